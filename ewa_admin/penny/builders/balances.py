"""
Portal-wide overview builders: outstanding balances, savings, adoption and
transfers across every company.
"""

from typing import List, Tuple

from ewa_admin.config import settings
from ewa_admin.data.snapshot import DataSnapshot
from ewa_admin.penny.builders.base import (
    BuildResult,
    drill_down_suggestions,
    employee_rows_view,
    list_answer,
    navigate,
    unique,
)
from ewa_admin.penny.builders.rankings import employee_rollups
from ewa_admin.penny.context import ConversationContext
from ewa_admin.penny.formatting import MISSING, currency, percent, plural
from ewa_admin.penny.intent import Classification
from ewa_admin.penny.schemas import Answer, AnswerKind, DataCard, DataCardContent


def build_outstanding_overview(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    """Total outstanding with the full per-employee breakdown (largest first)."""
    employees = list(snapshot.employees_with_outstanding_balance())
    total = sum(e.outstanding_balance for e in employees)

    if not employees:
        return BuildResult(
            answer=Answer(
                kind=AnswerKind.SINGLE_VALUE,
                text=f"There are no employees with outstanding balances. Total: **{currency(total)}**.",
                rich_content=DataCardContent(data=DataCard(
                    label="Outstanding Balance", value=currency(total), detail="0 employees",
                )),
                suggestions=drill_down_suggestions([]),
            ),
        )

    view = employee_rows_view(
        "Outstanding Balances", employees, amount="outstanding", total_label="Total Outstanding Balance",
    )
    return list_answer(
        view,
        f"The total outstanding balance is **{currency(total)}** across **{plural(len(employees), 'employee')}**.",
        summary=DataCard(label="Outstanding Balance", value=currency(total), detail=plural(len(employees), "employee")),
        kind=AnswerKind.SINGLE_VALUE,
        suggestions=drill_down_suggestions(employees),
        actions=[navigate("balances")],
        follow_up="Open the full list to see everyone and filter by company.",
    )


def _company_savings(snapshot: DataSnapshot) -> List[Tuple[str, float, int]]:
    """(company, total saved, employee count) for companies with savings, largest first."""
    rows = [
        (name, stats.total_savings_balance, stats.total_employees)
        for name, stats in employee_rollups(snapshot).items()
        if stats.total_savings_balance > 0
    ]
    rows.sort(key=lambda r: (-r[1], r[0].lower()))
    return rows


def build_savings_overview(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    stats = snapshot.aggregate_stats
    savers = sorted(
        (e for e in snapshot.employees if e.save_balance > 0),
        key=lambda e: (-e.save_balance, e.full_name.lower()),
    )
    per_employee_all = stats.total_savings_balance / stats.total_employees if stats.total_employees else 0.0

    lines = [
        "**Savings Program Stats:**",
        "",
        f"• **Total saved:** {currency(stats.total_savings_balance)}",
        f"• Employees with savings accounts: **{stats.employees_with_savings_accounts:,}**",
        f"• Employees with a balance: **{stats.employees_with_savings_balance:,}**",
        f"• **Average saved per employee** (all enrolled): **{currency(per_employee_all)}**",
        f"• **Average saved per employee** (among those with balance): **{currency(stats.avg_savings_balance)}**",
    ]
    companies = _company_savings(snapshot)
    if companies:
        lines.extend(["", "**Total saved per company:**"])
        for name, saved, headcount in companies[:settings.PENNY_TOP_N]:
            average = saved / headcount if headcount else 0.0
            lines.append(
                f"• **{name}**: {currency(saved)} ({plural(headcount, 'employee')}; avg **{currency(average)}** per employee)"
            )
        if len(companies) > settings.PENNY_TOP_N:
            lines.append(f"\n...and {len(companies) - settings.PENNY_TOP_N} more companies.")
    text = "\n".join(lines)

    suggestions = ["Show outstanding balances", "Show company stats", "List paused employees"]
    if companies:
        suggestions.append(f"Savings at {companies[0][0]}")
    if savers:
        suggestions.append(f"Tell me about {savers[0].full_name}")
    suggestions.append("Show top companies by adoption")

    if not savers:
        return BuildResult(
            answer=Answer(
                kind=AnswerKind.SINGLE_VALUE,
                text=text,
                rich_content=DataCardContent(data=DataCard(
                    label="Total Savings",
                    value=currency(stats.total_savings_balance),
                    detail=f"{stats.employees_with_savings_accounts} accounts • avg {currency(per_employee_all)}/employee",
                )),
                suggestions=unique(suggestions),
                actions=[navigate("savings")],
            ),
        )

    return list_answer(
        employee_rows_view("Savings Balances", savers, amount="savings", total_label="Total Savings"),
        text,
        summary=DataCard(
            label="Total Savings",
            value=currency(stats.total_savings_balance),
            detail=f"{stats.employees_with_savings_accounts} accounts • {stats.employees_with_savings_balance} with balance",
        ),
        kind=AnswerKind.SINGLE_VALUE,
        suggestions=unique(suggestions),
        actions=[navigate("savings")],
    )


def build_adoption_overview(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    stats = snapshot.aggregate_stats
    text = (
        "**Adoption & Enrollment Stats:**\n\n"
        f"• Total companies: **{stats.total_companies:,}**\n"
        f"• Eligible employees: **{stats.total_eligible:,}**\n"
        f"• Enrolled (adopted): **{stats.total_adopted:,}**\n"
        f"• Active users: **{stats.total_active:,}**\n"
        f"• Overall adoption rate: **{percent(stats.overall_adoption_rate)}**"
    )
    if stats.companies_missing_counts:
        text += (
            f"\n\n_{plural(stats.companies_missing_counts, 'company', 'companies')} "
            f"with eligible or adopted counts {MISSING} are left out of these totals._"
        )
    return BuildResult(
        answer=Answer(
            kind=AnswerKind.SINGLE_VALUE,
            text=text,
            rich_content=DataCardContent(data=DataCard(
                label="Adoption Rate",
                value=percent(stats.overall_adoption_rate),
                detail=f"{stats.total_adopted:,} of {stats.total_eligible:,} eligible",
            )),
            suggestions=["Show top companies by adoption", "Companies with adoption above 50%", "Show company stats"],
            actions=[navigate("adoption")],
        ),
    )


def build_transfer_overview(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    stats = snapshot.aggregate_stats
    text = (
        "**Transfer Statistics (All-time since launches):**\n\n"
        f"• Total transfers: **{stats.total_transfers:,}**\n"
        f"• Total amount transferred: **{currency(stats.total_transfer_amount)}**\n"
        f"• Average transfer amount: **{currency(stats.avg_transfer_amount)}**"
    )
    return BuildResult(
        answer=Answer(
            kind=AnswerKind.SINGLE_VALUE,
            text=text,
            rich_content=DataCardContent(data=DataCard(
                label="Total Transferred",
                value=currency(stats.total_transfer_amount),
                detail=f"{stats.total_transfers:,} transfers",
            )),
            suggestions=["Top clients by transfer amount", "Top clients by number of transfers", "Show company stats"],
            actions=[navigate("transfers")],
        ),
    )
