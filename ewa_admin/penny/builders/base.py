"""
Base Answer Builder - shared result type and helpers.

A builder is a pure function of (classification, snapshot, context). It never
touches the conversation store; it returns the answer together with the
context changes that should be committed if that answer is shown.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ewa_admin.config import settings
from ewa_admin.data.records import CompanyRecord, EmployeeRecord
from ewa_admin.data.snapshot import DataSnapshot
from ewa_admin.penny.context import Candidate, ConversationContext, PendingDisambiguation
from ewa_admin.penny.formatting import MISSING, ListView, render_capped
from ewa_admin.penny.schemas import (
    Action,
    ActionType,
    Answer,
    AnswerKind,
    DataCard,
    EntityName,
    SummaryWithList,
    SummaryWithListContent,
    Table,
    TableContent,
    TableData,
)

# Safe example queries offered whenever Penny can't answer
FALLBACK_MENU: List[str] = [
    "Show outstanding balances",
    "Show company stats",
    "Show savings stats",
    "List paused employees",
    "Show top companies by adoption",
]

MAX_SUGGESTIONS = 6

# Portal pages answers can link to
PAGES = {
    "employees": ("View Employees", "/employees"),
    "transfers": ("View Transfers", "/transfers"),
    "savings": ("View Savings", "/savings"),
    "adoption": ("View Adoption & Usage", "/adoption-usage"),
    "clients": ("View Clients", "/clients"),
    "balances": ("View Balances", "/balances"),
    "downloads": ("View Reports", "/downloads"),
}


@dataclass
class BuildResult:
    """An answer plus the context updates that go with it."""
    answer: Answer
    remember_employee: Optional[EmployeeRecord] = None
    remember_company: Optional[str] = None
    list_view: Optional[ListView] = None
    pending: Optional[PendingDisambiguation] = None
    keep_pending: bool = False

    def apply_to(self, context: ConversationContext) -> None:
        """Apply this result's updates to a (working copy of a) context."""
        if self.remember_employee is not None:
            context.last_employee = self.remember_employee
            if self.remember_employee.company:
                context.last_company = self.remember_employee.company
            context.last_subject = "employee"
        if self.remember_company is not None:
            context.last_company = self.remember_company
            context.last_subject = "company"
        if self.list_view is not None:
            context.last_list = self.list_view
        if self.pending is not None:
            context.pending = self.pending
        elif not self.keep_pending:
            context.pending = None


def unique(items: Iterable[str], limit: int = MAX_SUGGESTIONS) -> List[str]:
    """De-duplicated, order-preserving, capped."""
    seen = set()
    out: List[str] = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return out[:limit]


def navigate(page: str) -> Action:
    label, target = PAGES[page]
    return Action(label=label, type=ActionType.NAVIGATE, target=target)


def ask(label: str, query: Optional[str] = None) -> Action:
    return Action(label=label, type=ActionType.QUERY, target=query or label)


def employee_entities(employees: Iterable[EmployeeRecord]) -> List[EntityName]:
    return [EntityName(name=e.full_name, entity="employee") for e in employees]


def company_entities(names: Iterable[str]) -> List[EntityName]:
    return [EntityName(name=n, entity="company") for n in names if n]


def drill_down_suggestions(
    employees: Sequence[EmployeeRecord],
    max_employees: int = 2,
    max_companies: int = 2,
) -> List[str]:
    """
    Next questions after a list of employees.

    Up to two "Tell me about" and two "Show outstanding balances at", then
    general filler.
    """
    if not employees:
        return ["Show company stats", "List paused employees", "Show savings stats", "Show outstanding balances"]

    out = [f"Tell me about {e.full_name}" for e in employees[:max_employees] if e.full_name]
    seen = set()
    for employee in employees:
        company = (employee.company or "").strip()
        if company and company not in seen and len(out) < max_employees + max_companies:
            seen.add(company)
            out.append(f"Show outstanding balances at {company}")
    out.extend(["Show company stats", "List paused employees", "Show savings stats"])
    return unique(out)


def company_suggestions(company: str) -> List[str]:
    return unique([
        f"Tell me about {company}",
        f"What is {company}'s adoption rate?",
        f"Outstanding balances at {company}",
        f"Savings at {company}",
        f"Who are the admins at {company}?",
        "Show top companies by adoption",
    ])


def employee_suggestions(employee: EmployeeRecord) -> List[str]:
    name = employee.full_name
    out = [
        f"What is {name}'s outstanding balance?",
        f"Does {name} have savings?",
        f"Is {name} enrolled?",
    ]
    if employee.company:
        out.extend([f"Show company stats for {employee.company}", f"Outstanding balance at {employee.company}"])
    return unique(out)


# ============================================================================
# NOT FOUND / DISAMBIGUATION
# ============================================================================

def not_found(text: str, suggestions: Optional[Sequence[str]] = None) -> BuildResult:
    """A polite not-found answer; the fallback menu is always included."""
    return BuildResult(
        answer=Answer(
            kind=AnswerKind.NOT_FOUND,
            text=text,
            suggestions=unique(FALLBACK_MENU + list(suggestions or [])),
        ),
    )


def employee_not_found(name: str) -> BuildResult:
    return not_found(f'I couldn\'t find an employee named "{name}".', ["Show all employees"])


def company_not_found(name: str) -> BuildResult:
    return not_found(
        f'I couldn\'t find "{name}" in the Client Summary. '
        "Check the company name matches the COMPANY column in the Client Summary file.",
        ["Show company stats"],
    )


def candidate_suggestions(candidates: Sequence[Candidate]) -> List[str]:
    return unique(
        [f"Tell me about {c.name}" for c in candidates if c.entity == "company"]
        + [c.label for c in candidates if c.entity == "employee"],
        limit=settings.PENNY_SUGGESTION_LIMIT * 2,
    )


# ============================================================================
# LISTS
# ============================================================================

def list_answer(
    view: ListView,
    text: str,
    summary: Optional[DataCard] = None,
    kind: AnswerKind = AnswerKind.RANKED_LIST,
    suggestions: Optional[Sequence[str]] = None,
    actions: Optional[Sequence[Action]] = None,
    follow_up: Optional[str] = None,
    entities: Optional[Sequence[EntityName]] = None,
) -> BuildResult:
    """
    Render a list view capped at PENNY_TOP_N rows.

    With a summary card the payload is summary-with-list, otherwise a table.
    Either way the full row set goes in expand_list when rows were cut, and
    the view is remembered for export and filtering.
    """
    table, full = render_capped(view, settings.PENNY_TOP_N)
    if summary is not None:
        content = SummaryWithListContent(data=SummaryWithList(summary=summary, list=table), expand_list=full)
    else:
        content = TableContent(data=table, expand_list=full)
    if full is not None and follow_up is None:
        follow_up = f"Showing the first {settings.PENNY_TOP_N} of {table.row_count}. Open the full list to see everyone."
    return BuildResult(
        answer=Answer(
            kind=kind,
            text=text,
            rich_content=content,
            suggestions=unique(suggestions or []),
            actions=list(actions or []),
            follow_up=follow_up,
            entities=list(entities or []),
        ),
        list_view=view,
    )


def employee_rows_view(
    title: str,
    employees: Sequence[EmployeeRecord],
    amount: Optional[str] = None,
    total_label: Optional[str] = None,
) -> ListView:
    """A Name / <amount> / Company or Name / Location / Company view over employees."""
    if amount == "outstanding":
        headers = ("Name", "Outstanding Balance", "Company")
        rows = tuple((e.full_name, e.outstanding_balance, e.company or None) for e in employees)
        return ListView(title, headers, rows, amount_column=1, company_column=2, name_column=0, total_label=total_label)
    if amount == "savings":
        headers = ("Name", "Savings Balance", "Company")
        rows = tuple((e.full_name, e.save_balance, e.company or None) for e in employees)
        return ListView(title, headers, rows, amount_column=1, company_column=2, name_column=0, total_label=total_label)
    headers = ("Name", "Location", "Company", "Status")
    rows = tuple((e.full_name, e.location or None, e.company or None, e.status) for e in employees)
    return ListView(title, headers, rows, company_column=2, name_column=0)


def company_display_name(snapshot: DataSnapshot, company: CompanyRecord) -> str:
    found = snapshot.company(company.name)
    return found.name if found else company.name


# ============================================================================
# COMPARISON
# ============================================================================

def compare_values(first: Optional[float], second: Optional[float]) -> Tuple[Optional[float], Optional[float]]:
    """
    Signed delta (first - second) and percentage difference relative to second.

    The percentage is None when second is 0; both are None if either value is missing.
    """
    if first is None or second is None:
        return None, None
    delta = first - second
    if second == 0:
        return delta, None
    return delta, delta / abs(second) * 100.0


def comparison_result(
    first_name: str,
    second_name: str,
    label: str,
    first: Optional[float],
    second: Optional[float],
    fmt: Callable[[Optional[float]], str],
    entity: str,
    delta_fmt: Optional[Callable[[float], str]] = None,
) -> BuildResult:
    """Side-by-side comparison of one metric for two named entities."""
    delta, pct = compare_values(first, second)
    lines = [
        f"**{first_name}** vs **{second_name}** ({label}):",
        "",
        f"• {first_name}: **{fmt(first)}**",
        f"• {second_name}: **{fmt(second)}**",
    ]
    if delta is None:
        lines.append(f"• Difference: can't compare, {label} is {MISSING} for one of them.")
        delta_text = MISSING
    else:
        delta_text = (delta_fmt or _signed(fmt))(delta)
        pct_text = f" ({pct:+.1f}%)" if pct is not None else ""
        lines.append(f"• Difference: **{delta_text}**{pct_text}")

    table = Table(
        title=f"{label[0].upper()}{label[1:]}",
        data=TableData(
            headers=["", first_name, second_name, "Difference"],
            rows=[[label, fmt(first), fmt(second), delta_text]],
        ),
        row_count=1,
    )
    return BuildResult(
        answer=Answer(
            kind=AnswerKind.COMPARISON,
            text="\n".join(lines),
            rich_content=TableContent(data=table),
            entities=[EntityName(name=first_name, entity=entity), EntityName(name=second_name, entity=entity)],
        ),
    )


def _signed(fmt: Callable[[Optional[float]], str]) -> Callable[[float], str]:
    def _format(delta: float) -> str:
        sign = "-" if delta < 0 else "+"
        return f"{sign}{fmt(abs(delta))}"
    return _format
