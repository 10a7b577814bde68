"""
Answer Builders - one routine per intent.

Each builder has the signature
    (classification, snapshot, context) -> BuildResult
and never raises for missing data: it returns a not-found answer instead.
"""

from typing import Callable, Dict

from ewa_admin.data.snapshot import DataSnapshot
from ewa_admin.penny.builders.base import BuildResult
from ewa_admin.penny.context import ConversationContext
from ewa_admin.penny.intent import Classification, Intent

Builder = Callable[[Classification, DataSnapshot, ConversationContext], BuildResult]


def get_builder(intent: Intent) -> Builder:
    """Get the builder for an intent."""
    from ewa_admin.penny.builders import balances, companies, employees, general, rankings

    builders: Dict[Intent, Builder] = {
        Intent.GREETING: general.build_greeting,
        Intent.HELP: general.build_help,
        Intent.REPORTS: general.build_reports,
        Intent.EXPORT: general.build_export,
        Intent.FILTER_LIST: general.build_filter_list,
        Intent.DISAMBIGUATION: general.build_disambiguation,
        Intent.DUPLICATE_EMPLOYEES: general.build_duplicate_employees,
        Intent.NOT_FOUND: general.build_not_found,
        Intent.UNKNOWN: general.build_unknown,

        Intent.COMPARE_COMPANIES: rankings.build_compare_companies,
        Intent.ADOPTION_THRESHOLD: rankings.build_adoption_threshold,
        Intent.TOP_COMPANIES: rankings.build_top_companies,

        Intent.COMPANY_COUNT_LIVE: companies.build_company_count_live,
        Intent.PARTNERSHIP_COMPANIES: companies.build_partnership_companies,
        Intent.MODEL_COMPANIES: companies.build_model_companies,
        Intent.COMPANY_SUMMARY: companies.build_company_summary,
        Intent.COMPANY_LIVE: companies.build_company_live,
        Intent.COMPANY_MODEL: companies.build_company_model,
        Intent.COMPANY_ADMINS: companies.build_company_admins,
        Intent.COMPANY_ACTIVE: companies.build_company_active,
        Intent.COMPANY_ENROLLED: companies.build_company_enrolled,
        Intent.COMPANY_ADOPTION: companies.build_company_adoption,
        Intent.COMPANY_EMPLOYEE_COUNT: companies.build_company_employee_count,
        Intent.COMPANY_EMPLOYEES: companies.build_company_employees,
        Intent.COMPANY_SAVINGS: companies.build_company_savings,
        Intent.COMPANY_OUTSTANDING: companies.build_company_outstanding,
        Intent.COMPANY_TRANSFERS: companies.build_company_transfers,
        Intent.COMPANY_PROFILE: companies.build_company_profile,

        Intent.EMPLOYEE_PROFILE: employees.build_employee_profile,
        Intent.EMPLOYEE_STATUS: employees.build_employee_status,
        Intent.EMPLOYEE_LOCATION: employees.build_employee_location,
        Intent.EMPLOYEE_SAVINGS: employees.build_employee_savings,
        Intent.EMPLOYEE_OUTSTANDING: employees.build_employee_outstanding,
        Intent.EMPLOYEE_TRANSFERS: employees.build_employee_transfers,
        Intent.COMPARE_EMPLOYEES: employees.build_compare_employees,
        Intent.PAUSED_EMPLOYEES: employees.build_paused_employees,
        Intent.EMPLOYEE_LIST: employees.build_employee_list,
        Intent.EMPLOYEES_BY_LOCATION: employees.build_employees_by_location,

        Intent.OUTSTANDING_OVERVIEW: balances.build_outstanding_overview,
        Intent.SAVINGS_OVERVIEW: balances.build_savings_overview,
        Intent.ADOPTION_OVERVIEW: balances.build_adoption_overview,
        Intent.TRANSFER_OVERVIEW: balances.build_transfer_overview,
    }

    builder = builders.get(intent)
    if not builder:
        raise ValueError(f"No builder for intent: {intent}")

    return builder


def build_answer(
    classification: Classification,
    snapshot: DataSnapshot,
    context: ConversationContext,
) -> BuildResult:
    """Run the builder for a classification."""
    return get_builder(classification.intent)(classification, snapshot, context)
