"""
Ranking, threshold and comparison builders over companies.

Ordering is deterministic: descending by the metric (ascending for
"lowest"), ties broken by company name, companies with no value for the
metric listed last. Adoption for a company with nobody eligible is 0, not
missing.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ewa_admin.config import settings
from ewa_admin.data.records import CompanyEmployeeStats, CompanyRecord
from ewa_admin.data.snapshot import DataSnapshot, name_key
from ewa_admin.penny.builders.base import (
    BuildResult,
    comparison_result,
    company_entities,
    list_answer,
    navigate,
    not_found,
    unique,
)
from ewa_admin.penny.context import ConversationContext
from ewa_admin.penny.formatting import MISSING, ListView, count, currency, numbered_list, percent, plural
from ewa_admin.penny.intent import Classification, Metric
from ewa_admin.penny.schemas import DataCard


@dataclass(frozen=True)
class MetricSpec:
    """How to read, label and format one company metric."""
    title: str
    label: str
    fmt: Callable[[Optional[float]], str]
    page: str
    is_amount: bool = False
    from_employees: bool = False
    total_label: Optional[str] = None


METRICS: Dict[Metric, MetricSpec] = {
    Metric.ADOPTION: MetricSpec("Adoption Rate", "adoption rate", percent, "adoption"),
    Metric.TRANSFER_AMOUNT: MetricSpec(
        "Transfer Amount", "transfer amount", currency, "transfers", is_amount=True,
        total_label="Total Transfer Amount",
    ),
    Metric.TRANSFER_COUNT: MetricSpec("Number of Transfers", "transfers", count, "transfers"),
    Metric.ACTIVE_USERS: MetricSpec("Active Users", "active users", count, "adoption"),
    Metric.ENROLLED: MetricSpec("Enrolled Employees", "enrolled employees", count, "adoption"),
    Metric.OUTSTANDING: MetricSpec(
        "Outstanding Balance", "outstanding balance", currency, "balances", is_amount=True,
        from_employees=True, total_label="Total Outstanding Balance",
    ),
    Metric.PAUSED: MetricSpec("Paused Employees", "paused employees", count, "employees", from_employees=True),
    Metric.SAVINGS: MetricSpec(
        "Savings", "savings", currency, "savings", is_amount=True, from_employees=True,
        total_label="Total Savings",
    ),
}


def adoption_value(company: CompanyRecord) -> Optional[float]:
    """Adoption rate for ranking: 0 when nobody is eligible, None when not reported."""
    if company.eligible is None:
        return None
    if company.eligible <= 0:
        return 0.0
    if company.adopted is None:
        return None
    return company.adoption_rate


def _summary_value(company: CompanyRecord, metric: Metric) -> Optional[float]:
    if metric == Metric.ADOPTION:
        return adoption_value(company)
    if metric == Metric.TRANSFER_AMOUNT:
        return company.total_transfer_amount
    if metric == Metric.TRANSFER_COUNT:
        return company.transfers_in_period
    if metric == Metric.ACTIVE_USERS:
        return company.active
    if metric == Metric.ENROLLED:
        return company.adopted
    raise ValueError(f"Not a Client Summary metric: {metric}")


def _employee_value(stats: CompanyEmployeeStats, metric: Metric) -> float:
    if metric == Metric.OUTSTANDING:
        return stats.total_outstanding_balance
    if metric == Metric.PAUSED:
        return stats.paused_employees
    if metric == Metric.SAVINGS:
        return stats.total_savings_balance
    raise ValueError(f"Not an employee metric: {metric}")


def employee_rollups(snapshot: DataSnapshot) -> Dict[str, CompanyEmployeeStats]:
    """Per-company employee stats keyed by display name, built once per snapshot."""
    def _build() -> Dict[str, CompanyEmployeeStats]:
        names: Dict[str, str] = {}
        for employee in snapshot.employees:
            if employee.company:
                names.setdefault(name_key(employee.company), employee.company.strip())
        rollups = {}
        for display in names.values():
            stats = snapshot.company_employee_stats(display)
            if stats is not None:
                rollups[stats.company_name] = stats
        return rollups

    return snapshot.derived("company_rollups", _build)


def metric_value(snapshot: DataSnapshot, company: CompanyRecord, metric: Metric) -> Optional[float]:
    """One company's value for a metric (None when not reported)."""
    if METRICS[metric].from_employees:
        stats = snapshot.company_employee_stats(company.name)
        return _employee_value(stats, metric) if stats else None
    row = snapshot.company(company.name)
    return _summary_value(row, metric) if row else None


def rank_companies(
    snapshot: DataSnapshot,
    metric: Metric,
    ascending: bool = False,
    partnership: Optional[str] = None,
) -> Tuple[List[Tuple[str, float]], List[str]]:
    """
    Ranked (name, value) pairs plus names with no value, both deterministic.

    Employee-derived metrics only rank companies with a non-zero value.
    """
    present: List[Tuple[str, float]] = []
    missing: List[str] = []

    if METRICS[metric].from_employees:
        for name, stats in employee_rollups(snapshot).items():
            if partnership is not None:
                row = snapshot.company(name)
                if row is None or not row.partnership or name_key(row.partnership) != name_key(partnership):
                    continue
            value = _employee_value(stats, metric)
            if value > 0:
                present.append((name, value))
    else:
        companies = snapshot.companies_in_partnership(partnership) if partnership else snapshot.companies
        for company in companies:
            value = _summary_value(company, metric)
            if value is None:
                missing.append(company.name)
            else:
                present.append((company.name, value))

    if ascending:
        present.sort(key=lambda item: (item[1], item[0].lower()))
    else:
        present.sort(key=lambda item: (-item[1], item[0].lower()))
    missing.sort(key=str.lower)
    return present, missing


def _ranking_view(
    title: str,
    spec: MetricSpec,
    ranked: List[Tuple[str, float]],
    missing: List[str],
    filtered_title: Optional[str] = None,
) -> ListView:
    rows = [
        (i, name, value if spec.is_amount else spec.fmt(value))
        for i, (name, value) in enumerate(ranked, start=1)
    ]
    rows.extend((None, name, None if spec.is_amount else MISSING) for name in missing)
    return ListView(
        title=title,
        headers=("Rank", "Company", spec.title),
        rows=tuple(rows),
        amount_column=2 if spec.is_amount else None,
        company_column=1,
        total_label=spec.total_label,
        filtered_title=filtered_title,
    )


def build_top_companies(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    metric = c.metric or Metric.ADOPTION
    spec = METRICS[metric]
    ranked, missing = rank_companies(snapshot, metric, ascending=c.ascending, partnership=c.partnership)

    if not ranked and not missing:
        if spec.from_employees:
            return not_found(f"**No companies with {spec.label} found.**")
        return not_found("There are no companies in the Client Summary yet.")

    limit = min(c.top_n or settings.PENNY_TOP_N, settings.PENNY_TOP_N)
    if c.top_n:
        # An explicit "top N" bounds the whole list, not just the display
        ranked, missing = ranked[:c.top_n], missing[:max(0, c.top_n - len(ranked))]
    shown = ranked[:limit]

    direction = "Bottom" if c.ascending else "Top"
    scope = f"{c.partnership} Companies" if c.partnership else "Companies"
    title = f"{direction} {len(shown)} {scope} by {spec.title}"

    lines = [f"**{name}**: {spec.fmt(value)}" for name, value in shown]
    text = f"**{title}:**\n\n{numbered_list(lines)}" if lines else f"**{title}:**"
    if missing:
        text += (
            f"\n\n_{plural(len(missing), 'company', 'companies')} "
            f"{'has' if len(missing) == 1 else 'have'} no {spec.label} reported and "
            f"{'is' if len(missing) == 1 else 'are'} listed last._"
        )

    # Once filtered to one company the "Top N" count no longer applies
    view = _ranking_view(title, spec, ranked, missing, filtered_title=f"{direction} {scope} by {spec.title}")
    leader = shown[0] if shown else None
    summary = None
    if leader is not None:
        summary = DataCard(label=f"{direction} by {spec.title}", value=leader[0], detail=spec.fmt(leader[1]))

    return list_answer(
        view,
        text,
        summary=summary,
        suggestions=unique(
            [f"Tell me about {name}" for name, _ in shown[:2]]
            + ([f"Compare {shown[0][0]} vs {shown[1][0]}"] if len(shown) > 1 else [])
            + ["Show company stats", "Show outstanding balances"]
        ),
        actions=[navigate(spec.page)],
        entities=company_entities(name for name, _ in shown),
    )


def build_adoption_threshold(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    """Companies at or above (or strictly below) an adoption rate."""
    threshold = c.threshold if c.threshold is not None else 0.0
    companies = snapshot.companies_in_partnership(c.partnership) if c.partnership else snapshot.companies

    matched = []
    for company in companies:
        value = adoption_value(company)
        if value is None:
            continue
        if (c.above and value >= threshold) or (not c.above and value < threshold):
            matched.append((company.name, value))
    if c.above:
        matched.sort(key=lambda item: (-item[1], item[0].lower()))
    else:
        matched.sort(key=lambda item: (item[1], item[0].lower()))

    relation = "at or above" if c.above else "below"
    scope = f"{c.partnership} companies" if c.partnership else "companies"
    if not matched:
        return not_found(
            f"No {scope} have adoption {relation} {percent(threshold)}.",
            ["Show top companies by adoption"],
        )

    spec = METRICS[Metric.ADOPTION]
    title = f"Companies with Adoption {relation.title()} {percent(threshold)}"
    shown = matched[:settings.PENNY_TOP_N]
    lines = [f"**{name}**: {percent(value)}" for name, value in shown]
    text = (
        f"**{len(matched):,}** {scope} have adoption {relation} **{percent(threshold)}**:\n\n{numbered_list(lines)}"
    )
    return list_answer(
        _ranking_view(title, spec, matched, []),
        text,
        summary=DataCard(label=title, value=f"{len(matched):,}", detail=f"of {len(companies):,} {scope}"),
        suggestions=unique([f"Tell me about {name}" for name, _ in shown[:2]] + ["Show top companies by adoption"]),
        actions=[navigate("adoption")],
        entities=company_entities(name for name, _ in shown),
    )


def build_compare_companies(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    """Both companies' metric computed independently, with the signed difference."""
    first, second = c.companies[0], c.companies[1]
    metric = c.metric or Metric.ADOPTION
    spec = METRICS[metric]
    delta_fmt = _points if metric == Metric.ADOPTION else None

    result = comparison_result(
        first.name,
        second.name,
        spec.label,
        metric_value(snapshot, first, metric),
        metric_value(snapshot, second, metric),
        spec.fmt,
        entity="company",
        delta_fmt=delta_fmt,
    )
    result.answer.suggestions = unique([
        f"Tell me about {first.name}",
        f"Tell me about {second.name}",
        "Show top companies by adoption",
    ])
    result.answer.actions = [navigate(spec.page)]
    result.remember_company = second.name
    return result


def _points(delta: float) -> str:
    """A difference between two rates, in percentage points."""
    return f"{delta * 100:+.1f} pts"
