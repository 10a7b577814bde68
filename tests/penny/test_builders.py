"""Tests for the Penny answer builders."""
import pytest

from ewa_admin.config import settings
from ewa_admin.penny.builders import build_answer, get_builder
from ewa_admin.penny.builders.base import FALLBACK_MENU, BuildResult, compare_values, drill_down_suggestions
from ewa_admin.penny.builders.balances import build_adoption_overview, build_outstanding_overview, build_savings_overview
from ewa_admin.penny.builders.companies import (
    build_company_adoption,
    build_company_admins,
    build_company_count_live,
    build_company_employee_count,
    build_company_outstanding,
    build_company_profile,
    build_company_savings,
    build_model_companies,
    build_partnership_companies,
)
from ewa_admin.penny.builders.employees import (
    build_compare_employees,
    build_employee_list,
    build_employee_location,
    build_employee_outstanding,
    build_employee_savings,
    build_employee_status,
    build_employee_transfers,
    build_employees_by_location,
    build_paused_employees,
)
from ewa_admin.penny.builders.general import (
    EXPORT_PATH,
    build_disambiguation,
    build_duplicate_employees,
    build_export,
    build_filter_list,
    build_greeting,
    build_not_found,
)
from ewa_admin.penny.builders.rankings import (
    build_adoption_threshold,
    build_compare_companies,
    build_top_companies,
    rank_companies,
)
from ewa_admin.penny.context import Candidate, ConversationContext, PendingDisambiguation
from ewa_admin.penny.intent import Classification, Intent, Metric, QueryError
from ewa_admin.penny.schemas import (
    ActionType,
    AnswerKind,
    CompanyStatsContent,
    DidYouMeanContent,
    SummaryWithListContent,
)


def _c(intent, **kwargs):
    return Classification(intent, 0.9, query=kwargs.pop("query", "test"), **kwargs)


def _company(snapshot, name):
    return snapshot.company(name)


def _employee(snapshot, name, company=None):
    return next(e for e in snapshot.employees if e.full_name == name and (company is None or e.company == company))


# ============================================================================
# REGISTRY AND RESULT
# ============================================================================

class TestRegistry:
    """Every intent has a builder."""

    @pytest.mark.parametrize("intent", list(Intent))
    def test_builder_registered(self, intent):
        assert callable(get_builder(intent))

    def test_build_answer_dispatches(self, sample_snapshot, empty_context):
        result = build_answer(_c(Intent.GREETING), sample_snapshot, empty_context)
        assert "Penny" in result.answer.text


class TestBuildResult:
    """Context updates carried by a result."""

    def test_remember_employee_sets_company_and_subject(self, sample_snapshot, empty_context):
        jane = _employee(sample_snapshot, "Jane Smith")
        result = build_employee_status(_c(Intent.EMPLOYEE_STATUS, employee=jane), sample_snapshot, empty_context)
        result.apply_to(empty_context)
        assert empty_context.last_employee == jane
        assert empty_context.last_company == "Acme Co"
        assert empty_context.last_subject == "employee"

    def test_pending_cleared_unless_kept(self, sample_snapshot):
        pending = PendingDisambiguation("q", "f", (Candidate("Jane Smith", "employee", "Acme Co"),))
        context = ConversationContext(pending=pending)
        build_greeting(_c(Intent.GREETING), sample_snapshot, context).apply_to(context)
        assert context.pending == pending

        build_company_count_live(_c(Intent.COMPANY_COUNT_LIVE), sample_snapshot, context).apply_to(context)
        assert context.pending is None

    def test_builders_do_not_touch_context(self, sample_snapshot, empty_context):
        build_outstanding_overview(_c(Intent.OUTSTANDING_OVERVIEW), sample_snapshot, empty_context)
        assert empty_context.last_list is None


# ============================================================================
# RANKINGS
# ============================================================================

class TestTopCompanies:
    """Deterministic rankings with missing values listed last."""

    def test_adoption_ranking(self, sample_snapshot, empty_context):
        result = build_top_companies(_c(Intent.TOP_COMPANIES, metric=Metric.ADOPTION), sample_snapshot, empty_context)
        names = [row[1] for row in result.list_view.rows]
        assert names == ["Globex", "Acme Co", "Stark Industries", "Hooli", "Initech", "Umbrella Corp"]
        assert result.list_view.rows[-1][0] is None
        assert "**Top 5 Companies by Adoption Rate:**" in result.answer.text
        assert "1 company has no adoption rate reported" in result.answer.text

    def test_ascending(self, sample_snapshot, empty_context):
        result = build_top_companies(
            _c(Intent.TOP_COMPANIES, metric=Metric.ADOPTION, ascending=True), sample_snapshot, empty_context,
        )
        names = [row[1] for row in result.list_view.rows]
        assert names[:5] == ["Hooli", "Initech", "Acme Co", "Stark Industries", "Globex"]
        assert "Bottom 5" in result.answer.text

    def test_explicit_top_n_bounds_list(self, sample_snapshot, empty_context):
        result = build_top_companies(
            _c(Intent.TOP_COMPANIES, metric=Metric.ADOPTION, top_n=2), sample_snapshot, empty_context,
        )
        assert [row[1] for row in result.list_view.rows] == ["Globex", "Acme Co"]
        assert "Top 2 Companies" in result.answer.text

    def test_transfer_amount_total(self, sample_snapshot, empty_context):
        result = build_top_companies(
            _c(Intent.TOP_COMPANIES, metric=Metric.TRANSFER_AMOUNT), sample_snapshot, empty_context,
        )
        assert [row[1] for row in result.list_view.rows] == [
            "Acme Co", "Globex", "Stark Industries", "Initech", "Hooli", "Umbrella Corp",
        ]
        assert result.list_view.total() == pytest.approx(265000.0)
        assert result.list_view.missing_amounts() == 2
        assert result.list_view.total_line() == "Total Transfer Amount: **$265,000.00** (2 rows not reported)"

    def test_ranking_is_idempotent(self, sample_snapshot, empty_context):
        """The same snapshot always ranks the same way, ties included."""
        assert rank_companies(sample_snapshot, Metric.PAUSED) == rank_companies(sample_snapshot, Metric.PAUSED)

        c = _c(Intent.TOP_COMPANIES, metric=Metric.TRANSFER_AMOUNT)
        first = build_top_companies(c, sample_snapshot, empty_context)
        second = build_top_companies(c, sample_snapshot, empty_context)
        assert first.list_view.rows == second.list_view.rows
        assert first.answer.text == second.answer.text

    def test_filtered_ranking_drops_count_from_title(self, sample_snapshot, empty_context):
        result = build_top_companies(
            _c(Intent.TOP_COMPANIES, metric=Metric.TRANSFER_AMOUNT, top_n=4), sample_snapshot, empty_context,
        )
        assert result.list_view.title == "Top 4 Companies by Transfer Amount"
        filtered = result.list_view.with_filter("Globex")
        assert filtered.display_title == "Top Companies by Transfer Amount at Globex"

    def test_employee_metric_skips_zero(self, sample_snapshot):
        ranked, missing = rank_companies(sample_snapshot, Metric.OUTSTANDING)
        assert ranked == [("Acme Co", 470.5), ("Stark Industries", 80.0)]
        assert missing == []

    def test_ties_broken_by_name(self, sample_snapshot):
        ranked, _ = rank_companies(sample_snapshot, Metric.PAUSED)
        assert [name for name, _ in ranked] == ["Acme Co", "Globex", "Stark Industries"]

    def test_partnership_scope(self, sample_snapshot, empty_context):
        result = build_top_companies(
            _c(Intent.TOP_COMPANIES, metric=Metric.ADOPTION, partnership="Summit"), sample_snapshot, empty_context,
        )
        assert [row[1] for row in result.list_view.rows] == ["Stark Industries", "Umbrella Corp"]
        assert "Summit Companies" in result.answer.text


class TestAdoptionThreshold:
    """Threshold filters."""

    def test_above_is_inclusive(self, sample_snapshot, empty_context):
        result = build_adoption_threshold(
            _c(Intent.ADOPTION_THRESHOLD, threshold=0.25, above=True), sample_snapshot, empty_context,
        )
        assert [row[1] for row in result.list_view.rows] == ["Globex", "Acme Co", "Stark Industries"]

    def test_below(self, sample_snapshot, empty_context):
        result = build_adoption_threshold(
            _c(Intent.ADOPTION_THRESHOLD, threshold=0.1, above=False), sample_snapshot, empty_context,
        )
        assert [row[1] for row in result.list_view.rows] == ["Hooli", "Initech"]
        assert "**2** companies have adoption below **10.0%**" in result.answer.text

    def test_nothing_matches(self, sample_snapshot, empty_context):
        result = build_adoption_threshold(
            _c(Intent.ADOPTION_THRESHOLD, threshold=0.9, above=True), sample_snapshot, empty_context,
        )
        assert result.answer.kind == AnswerKind.NOT_FOUND


class TestCompareCompanies:
    """Signed differences between two companies."""

    def test_adoption_in_points(self, sample_snapshot, empty_context):
        c = _c(
            Intent.COMPARE_COMPANIES, metric=Metric.ADOPTION,
            companies=(_company(sample_snapshot, "Acme Co"), _company(sample_snapshot, "Globex")),
        )
        result = build_compare_companies(c, sample_snapshot, empty_context)
        assert result.answer.kind == AnswerKind.COMPARISON
        assert "**-35.0 pts** (-58.3%)" in result.answer.text
        assert result.remember_company == "Globex"

    def test_zero_second_value_has_no_percentage(self, sample_snapshot, empty_context):
        c = _c(
            Intent.COMPARE_COMPANIES, metric=Metric.ADOPTION,
            companies=(_company(sample_snapshot, "Acme Co"), _company(sample_snapshot, "Initech")),
        )
        text = build_compare_companies(c, sample_snapshot, empty_context).answer.text
        assert text.endswith("• Difference: **+25.0 pts**")

    def test_missing_value(self, sample_snapshot, empty_context):
        c = _c(
            Intent.COMPARE_COMPANIES, metric=Metric.TRANSFER_AMOUNT,
            companies=(_company(sample_snapshot, "Acme Co"), _company(sample_snapshot, "Umbrella Corp")),
        )
        text = build_compare_companies(c, sample_snapshot, empty_context).answer.text
        assert "can't compare" in text

    def test_compare_values(self):
        assert compare_values(10.0, 5.0) == (5.0, 100.0)
        assert compare_values(10.0, 0.0) == (10.0, None)
        assert compare_values(None, 5.0) == (None, None)


# ============================================================================
# COMPANIES
# ============================================================================

class TestCompanyBuilders:
    """Per-company answers."""

    def test_profile(self, sample_snapshot, empty_context):
        c = _c(Intent.COMPANY_PROFILE, company=_company(sample_snapshot, "Acme Co"))
        result = build_company_profile(c, sample_snapshot, empty_context)
        assert isinstance(result.answer.rich_content, CompanyStatsContent)
        assert result.answer.rich_content.data.eligible == 200
        assert "• Adoption rate: **25.0%**" in result.answer.text
        assert "• Outstanding balances: **$470.50**" in result.answer.text
        assert "hr@acme.example, payroll@acme.example" in result.answer.text
        assert result.remember_company == "Acme Co"

    def test_profile_missing_counts_are_not_zero(self, sample_snapshot, empty_context):
        c = _c(Intent.COMPANY_PROFILE, company=_company(sample_snapshot, "Umbrella Corp"))
        result = build_company_profile(c, sample_snapshot, empty_context)
        assert "• Adopted (enrolled): **not reported**" in result.answer.text
        assert result.answer.rich_content.data.adopted is None

    def test_adoption(self, sample_snapshot, empty_context):
        c = _c(Intent.COMPANY_ADOPTION, company=_company(sample_snapshot, "Acme Co"))
        text = build_company_adoption(c, sample_snapshot, empty_context).answer.text
        assert text == "**Acme Co** adoption rate: **25.0%** (50 adopted out of 200 eligible)."

    def test_adoption_zero_eligible(self, sample_snapshot, empty_context):
        c = _c(Intent.COMPANY_ADOPTION, company=_company(sample_snapshot, "Initech"))
        assert "**0.0%**" in build_company_adoption(c, sample_snapshot, empty_context).answer.text

    def test_adoption_not_reported(self, sample_snapshot, empty_context):
        c = _c(Intent.COMPANY_ADOPTION, company=_company(sample_snapshot, "Umbrella Corp"))
        text = build_company_adoption(c, sample_snapshot, empty_context).answer.text
        assert text == "**Umbrella Corp**: adoption rate is not reported in the Client Summary."

    def test_outstanding(self, sample_snapshot, empty_context):
        c = _c(Intent.COMPANY_OUTSTANDING, company=_company(sample_snapshot, "Acme Co"))
        result = build_company_outstanding(c, sample_snapshot, empty_context)
        assert "**$470.50**" in result.answer.text
        assert [row[0] for row in result.list_view.rows] == ["John Doe", "Jane Smith", "Alex Kim"]
        assert isinstance(result.answer.rich_content, SummaryWithListContent)

    def test_outstanding_none_owing(self, sample_snapshot, empty_context):
        c = _c(Intent.COMPANY_OUTSTANDING, company=_company(sample_snapshot, "Globex"))
        result = build_company_outstanding(c, sample_snapshot, empty_context)
        assert "No employees with outstanding balances" in result.answer.text
        assert result.list_view is None

    def test_savings(self, sample_snapshot, empty_context):
        c = _c(Intent.COMPANY_SAVINGS, company=_company(sample_snapshot, "Globex"))
        result = build_company_savings(c, sample_snapshot, empty_context)
        assert "Total saved: **$575.00**" in result.answer.text
        assert [row[0] for row in result.list_view.rows] == ["Maria Garcia", "Alex Kim"]

    def test_admins(self, sample_snapshot, empty_context):
        c = _c(Intent.COMPANY_ADMINS, company=_company(sample_snapshot, "Acme Co"))
        assert "has **2** admins" in build_company_admins(c, sample_snapshot, empty_context).answer.text

        c = _c(Intent.COMPANY_ADMINS, company=_company(sample_snapshot, "Stark Industries"))
        assert "No admins listed" in build_company_admins(c, sample_snapshot, empty_context).answer.text

    def test_employee_count(self, sample_snapshot, empty_context):
        c = _c(Intent.COMPANY_EMPLOYEE_COUNT, company=_company(sample_snapshot, "Acme Co"))
        assert "**3 enrolled employees**" in build_company_employee_count(c, sample_snapshot, empty_context).answer.text

    def test_count_live(self, sample_snapshot, empty_context):
        result = build_company_count_live(_c(Intent.COMPANY_COUNT_LIVE), sample_snapshot, empty_context)
        assert result.answer.text.startswith("**6** companies are live")

    def test_partnership_companies(self, sample_snapshot, empty_context):
        result = build_partnership_companies(
            _c(Intent.PARTNERSHIP_COMPANIES, partnership="OSV"), sample_snapshot, empty_context,
        )
        assert "**OSV** partnership has **2** clients" in result.answer.text

    def test_model_companies(self, sample_snapshot, empty_context):
        result = build_model_companies(_c(Intent.MODEL_COMPANIES, model="Reseller"), sample_snapshot, empty_context)
        assert [row[0] for row in result.list_view.rows] == ["Globex", "Hooli", "Stark Industries"]


# ============================================================================
# EMPLOYEES
# ============================================================================

class TestEmployeeBuilders:
    """Per-employee answers and employee lists."""

    def test_status(self, sample_snapshot, empty_context):
        jane = _employee(sample_snapshot, "Jane Smith")
        text = build_employee_status(_c(Intent.EMPLOYEE_STATUS, employee=jane), sample_snapshot, empty_context).answer.text
        assert text == "**Jane Smith** is **Active** and enrolled in the EWA program."

        john = _employee(sample_snapshot, "John Doe")
        text = build_employee_status(_c(Intent.EMPLOYEE_STATUS, employee=john), sample_snapshot, empty_context).answer.text
        assert "**Paused**" in text

    def test_location(self, sample_snapshot, empty_context):
        jane = _employee(sample_snapshot, "Jane Smith")
        result = build_employee_location(_c(Intent.EMPLOYEE_LOCATION, employee=jane), sample_snapshot, empty_context)
        assert result.answer.text == "**Jane Smith** works at Acme Co (Austin)."

    def test_outstanding_none(self, sample_snapshot, empty_context):
        maria = _employee(sample_snapshot, "Maria Garcia")
        result = build_employee_outstanding(
            _c(Intent.EMPLOYEE_OUTSTANDING, employee=maria), sample_snapshot, empty_context,
        )
        assert "has no outstanding balance" in result.answer.text

    def test_savings_without_account(self, sample_snapshot, empty_context):
        priya = _employee(sample_snapshot, "Priya Patel")
        result = build_employee_savings(_c(Intent.EMPLOYEE_SAVINGS, employee=priya), sample_snapshot, empty_context)
        assert "does not have a savings account" in result.answer.text

    def test_transfers(self, sample_snapshot, empty_context):
        jane = _employee(sample_snapshot, "Jane Smith")
        result = build_employee_transfers(
            _c(Intent.EMPLOYEE_TRANSFERS, employee=jane), sample_snapshot, empty_context,
        )
        assert "Lifetime: **14** transfers, **$2,100.00**" in result.answer.text

    def test_compare_employees(self, sample_snapshot, empty_context):
        jane = _employee(sample_snapshot, "Jane Smith")
        john = _employee(sample_snapshot, "John Doe")
        result = build_compare_employees(
            _c(Intent.COMPARE_EMPLOYEES, employees=(jane, john), metric=Metric.OUTSTANDING),
            sample_snapshot, empty_context,
        )
        assert "**-$179.50** (-59.8%)" in result.answer.text
        assert result.remember_employee == john

    def test_paused_at_company(self, sample_snapshot, empty_context):
        c = _c(Intent.PAUSED_EMPLOYEES, company=_company(sample_snapshot, "Acme Co"))
        result = build_paused_employees(c, sample_snapshot, empty_context)
        assert [row[0] for row in result.list_view.rows] == ["John Doe"]
        assert result.list_view.display_title == "Paused Employees at Acme Co"
        assert result.remember_company == "Acme Co"

    def test_paused_everywhere(self, sample_snapshot, empty_context):
        result = build_paused_employees(_c(Intent.PAUSED_EMPLOYEES), sample_snapshot, empty_context)
        assert [row[0] for row in result.list_view.rows] == ["John Doe", "Alex Kim", "Bob Lee"]

    def test_by_location(self, sample_snapshot, empty_context):
        result = build_employees_by_location(
            _c(Intent.EMPLOYEES_BY_LOCATION, location="Denver"), sample_snapshot, empty_context,
        )
        assert [row[0] for row in result.list_view.rows] == ["Alex Kim", "Bob Lee"]

    def test_employee_list(self, sample_snapshot, empty_context):
        result = build_employee_list(_c(Intent.EMPLOYEE_LIST), sample_snapshot, empty_context)
        assert result.answer.text.startswith("**7 Enrolled Employees:**")
        assert "• Paused: 3" in result.answer.text

    def test_drill_down_suggestions(self, sample_snapshot):
        employees = list(sample_snapshot.employees_with_outstanding_balance())
        suggestions = drill_down_suggestions(employees)
        assert suggestions[:4] == [
            "Tell me about John Doe",
            "Tell me about Jane Smith",
            "Show outstanding balances at Acme Co",
            "Show outstanding balances at Stark Industries",
        ]


# ============================================================================
# OVERVIEWS
# ============================================================================

class TestOverviews:
    """Portal-wide balances, savings and adoption."""

    def test_outstanding_overview(self, sample_snapshot, empty_context):
        result = build_outstanding_overview(_c(Intent.OUTSTANDING_OVERVIEW), sample_snapshot, empty_context)
        assert "**$550.50** across **4 employees**" in result.answer.text
        assert [row[0] for row in result.list_view.rows] == ["John Doe", "Jane Smith", "Bob Lee", "Alex Kim"]
        table = result.answer.rich_content.data.list
        assert table.total_amount == "$550.50"
        assert table.row_count == 4

    def test_outstanding_overview_capped(self, sample_snapshot, empty_context, monkeypatch):
        monkeypatch.setattr(settings, "PENNY_TOP_N", 2)
        result = build_outstanding_overview(_c(Intent.OUTSTANDING_OVERVIEW), sample_snapshot, empty_context)
        content = result.answer.rich_content
        assert len(content.data.list.data.rows) == 2
        assert content.data.list.total_amount == "$550.50"
        assert len(content.expand_list.data.rows) == 4

    def test_savings_overview(self, sample_snapshot, empty_context):
        result = build_savings_overview(_c(Intent.SAVINGS_OVERVIEW), sample_snapshot, empty_context)
        assert "• **Total saved:** $825.00" in result.answer.text
        assert [row[0] for row in result.list_view.rows] == ["Maria Garcia", "Jane Smith", "Alex Kim"]

    def test_adoption_overview_notes_missing(self, sample_snapshot, empty_context):
        text = build_adoption_overview(_c(Intent.ADOPTION_OVERVIEW), sample_snapshot, empty_context).answer.text
        assert "Overall adoption rate: **30.2%**" in text
        assert "2 companies with eligible or adopted counts not reported" in text


# ============================================================================
# GENERAL
# ============================================================================

class TestListBuilders:
    """Export and filtering of the list on screen."""

    @pytest.fixture
    def listed(self, sample_snapshot, empty_context):
        result = build_outstanding_overview(_c(Intent.OUTSTANDING_OVERVIEW), sample_snapshot, empty_context)
        return ConversationContext(last_list=result.list_view)

    def test_export_without_list(self, sample_snapshot, empty_context):
        result = build_export(_c(Intent.EXPORT), sample_snapshot, empty_context)
        assert result.answer.kind == AnswerKind.NOT_FOUND

    def test_export(self, sample_snapshot, listed):
        result = build_export(_c(Intent.EXPORT), sample_snapshot, listed)
        action = result.answer.actions[0]
        assert action.type == ActionType.DOWNLOAD
        assert action.target == EXPORT_PATH
        assert "Total Outstanding Balance: **$550.50**" in result.answer.text

    def test_filter_recomputes_total(self, sample_snapshot, listed):
        c = _c(Intent.FILTER_LIST, company=_company(sample_snapshot, "Acme Co"))
        result = build_filter_list(c, sample_snapshot, listed)
        assert "**$470.50**" in result.answer.text
        assert result.list_view.company_filter == "Acme Co"
        assert len(result.list_view.visible_rows()) == 3

    def test_filter_company_not_in_list(self, sample_snapshot, listed):
        c = _c(Intent.FILTER_LIST, company=_company(sample_snapshot, "Globex"))
        assert build_filter_list(c, sample_snapshot, listed).answer.kind == AnswerKind.NOT_FOUND

    def test_clear_filter(self, sample_snapshot, listed):
        listed.last_list = listed.last_list.with_filter("Acme Co")
        result = build_filter_list(_c(Intent.FILTER_LIST, clear_filter=True), sample_snapshot, listed)
        assert result.list_view.company_filter is None
        assert "**$550.50**" in result.answer.text

    def test_filter_to_company_with_no_amount(self, sample_snapshot, empty_context):
        """A company with no reported amount has a missing total, not $0.00."""
        ranking = build_top_companies(
            _c(Intent.TOP_COMPANIES, metric=Metric.TRANSFER_AMOUNT), sample_snapshot, empty_context,
        )
        context = ConversationContext(last_list=ranking.list_view)
        c = _c(Intent.FILTER_LIST, company=_company(sample_snapshot, "Umbrella Corp"))
        result = build_filter_list(c, sample_snapshot, context)
        assert "**Top Companies by Transfer Amount at Umbrella Corp** (1 row)" in result.answer.text
        assert "Total Transfer Amount: not reported" in result.answer.text
        assert "$0.00" not in result.answer.text
        assert result.list_view.total() is None
        assert result.answer.rich_content.data.summary.value == "not reported"
        assert result.answer.rich_content.data.list.total_amount == "not reported"

    def test_export_notes_rows_without_amount(self, sample_snapshot, empty_context):
        ranking = build_top_companies(
            _c(Intent.TOP_COMPANIES, metric=Metric.TRANSFER_AMOUNT), sample_snapshot, empty_context,
        )
        result = build_export(_c(Intent.EXPORT), sample_snapshot, ConversationContext(last_list=ranking.list_view))
        assert "Total Transfer Amount: **$265,000.00** (2 rows not reported)." in result.answer.text


class TestFallbackBuilders:
    """Disambiguation and not-found answers."""

    def test_disambiguation(self, sample_snapshot, empty_context):
        candidates = (Candidate("Jane Smith", "employee", "Acme Co"), Candidate("Acme Co", "company"))
        c = _c(Intent.DISAMBIGUATION, query="Jnae", fragment="Jnae", candidates=candidates,
               error=QueryError.AMBIGUOUS)
        result = build_disambiguation(c, sample_snapshot, empty_context)
        assert result.answer.kind == AnswerKind.DISAMBIGUATION
        assert isinstance(result.answer.rich_content, DidYouMeanContent)
        assert result.answer.rich_content.data.companies[0].partnership == "OSV"
        assert result.pending.candidates == candidates
        assert "1. Jane Smith (Acme Co)" in result.answer.text

    def test_duplicate_employees(self, sample_snapshot, empty_context):
        namesakes = tuple(e for e in sample_snapshot.employees if e.full_name == "Alex Kim")
        c = _c(
            Intent.DUPLICATE_EMPLOYEES, employees=namesakes, fragment="Alex Kim",
            candidates=tuple(Candidate(e.full_name, "employee", e.company) for e in namesakes),
        )
        result = build_duplicate_employees(c, sample_snapshot, empty_context)
        assert 'Found 2 employees named "Alex Kim"' in result.answer.text
        assert result.pending is not None

    def test_not_found_always_has_menu(self, sample_snapshot, empty_context):
        c = _c(Intent.NOT_FOUND, fragment="Zebediah", error=QueryError.NO_MATCH)
        result = build_not_found(c, sample_snapshot, empty_context)
        assert result.answer.suggestions[:len(FALLBACK_MENU)] == FALLBACK_MENU
        assert '"Zebediah"' in result.answer.text

    def test_result_type(self, sample_snapshot, empty_context):
        assert isinstance(build_not_found(_c(Intent.NOT_FOUND), sample_snapshot, empty_context), BuildResult)
