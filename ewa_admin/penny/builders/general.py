"""
General Answer Builders.

Greeting, help, the reports list, export and filtering of the list on screen,
disambiguation prompts and the not-found family.
"""

from ewa_admin.config import settings
from ewa_admin.data.snapshot import DataSnapshot, name_key
from ewa_admin.penny.builders.base import (
    FALLBACK_MENU,
    BuildResult,
    candidate_suggestions,
    company_entities,
    employee_entities,
    list_answer,
    navigate,
    not_found,
)
from ewa_admin.penny.context import ConversationContext
from ewa_admin.penny.formatting import MISSING, currency, numbered_list, plural
from ewa_admin.penny.intent import Classification, QueryError
from ewa_admin.penny.schemas import (
    Action,
    ActionType,
    Answer,
    AnswerKind,
    CompanyOption,
    DataCard,
    DataCardContent,
    DidYouMean,
    DidYouMeanContent,
    EmployeeOption,
    EntityName,
    ReportEntry,
    ReportListContent,
)

GREETING_TEXT = (
    "Hello! I'm Penny, your EWA assistant. I can help you with:\n\n"
    "• **Employee information** - balances, savings, enrollment status\n"
    "• **Company stats** - adoption rates, transfer volumes\n"
    "• **Outstanding balances** - who owes what\n"
    "• **Savings accounts** - balances and participation\n\n"
    "What would you like to know?"
)

HELP_TEXT = (
    "I can help you with:\n\n"
    "**Employee Information:**\n"
    "• \"Tell me about [name]\"\n"
    "• \"Is [name] enrolled?\"\n"
    "• \"What is [name]'s balance?\"\n\n"
    "**Outstanding Balances:**\n"
    "• \"Show outstanding balances\"\n"
    "• \"Who owes money?\"\n\n"
    "**Savings:**\n"
    "• \"Show savings stats\"\n"
    "• \"Who are the top savers?\"\n\n"
    "**Companies/Clients:**\n"
    "• \"Show company stats\"\n"
    "• \"Top companies by adoption\"\n"
    "• \"Employees at [company name]\"\n\n"
    "**Lists:**\n"
    "• \"List paused employees\"\n"
    "• \"Employees at [location]\""
)

UNKNOWN_TEXT = (
    "I'm not sure how to help with that. You can ask me about:\n\n"
    "• **Employee information** - \"Tell me about [name]\"\n"
    "• **Outstanding balances** - \"Who has outstanding balances?\"\n"
    "• **Savings accounts** - \"Show savings stats\"\n"
    "• **Company/client stats** - \"Show company adoption rates\"\n"
    "• **Enrollment status** - \"Is [name] enrolled?\""
)

REPORTS = [
    ReportEntry(
        id="transfers",
        name="Transfers Report",
        description="Complete breakdown of all wage transfers including instant vs standard, amounts, and employee activity.",
    ),
    ReportEntry(
        id="save",
        name="Save Accounts Report",
        description="Employee savings activity, account balances, contribution trends, and savings milestones.",
    ),
    ReportEntry(
        id="reconciliation",
        name="Reconciliation Report",
        description="Payroll reconciliation data with transfer totals, fees, and payback deductions by pay period.",
    ),
    ReportEntry(
        id="outstanding",
        name="Outstanding Balances Report",
        description="Detailed list of employees with outstanding balances, amounts owed, and expected payback dates.",
    ),
]

# Download URL for the last list; the orchestrator appends the conversation id
EXPORT_PATH = f"{settings.API_V1_PREFIX}/penny/export"


def build_greeting(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    return BuildResult(
        answer=Answer(kind=AnswerKind.SINGLE_VALUE, text=GREETING_TEXT, suggestions=list(FALLBACK_MENU)),
        keep_pending=True,
    )


def build_help(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    return BuildResult(
        answer=Answer(kind=AnswerKind.SINGLE_VALUE, text=HELP_TEXT, suggestions=list(FALLBACK_MENU)),
        keep_pending=True,
    )


def build_reports(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    names = numbered_list([f"**{r.name}** - {r.description}" for r in REPORTS])
    return BuildResult(
        answer=Answer(
            kind=AnswerKind.RANKED_LIST,
            text=f"**Available reports:**\n\n{names}",
            rich_content=ReportListContent(data=list(REPORTS)),
            actions=[navigate("downloads")],
            suggestions=["Show outstanding balances", "Show savings stats", "Show transfer stats"],
        ),
    )


def build_export(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    """Export whatever list is on screen, with its current filter."""
    view = context.last_list
    if view is None:
        return not_found(
            "There's no list to export yet. Ask for a list first, e.g. \"Show outstanding balances\".",
        )

    rows = view.visible_rows()
    text = f"**{view.display_title}** is ready to export ({plural(len(rows), 'row')})."
    total_line = view.total_line()
    if total_line:
        text += f" {total_line}."

    return list_answer(
        view,
        text,
        actions=[Action(label="Download CSV", type=ActionType.DOWNLOAD, target=EXPORT_PATH)],
        suggestions=["Show company stats", "Show outstanding balances", "List paused employees"],
    )


def build_filter_list(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    """Narrow (or widen) the list on screen; totals are recomputed over the rows in view."""
    view = context.last_list
    if view is None:
        return not_found("There's no list on screen to filter. Ask for a list first.")

    if c.clear_filter:
        filtered = view.with_filter(None)
    else:
        if view.company_column is None:
            return not_found(f"**{view.title}** can't be filtered by company.")
        company = c.company.name
        if name_key(company) not in {name_key(name) for name in view.companies()}:
            return not_found(
                f"**{view.title}** has no rows for **{company}**.",
                [f"Tell me about {company}"],
            )
        filtered = view.with_filter(company)

    rows = filtered.visible_rows()
    text = f"**{filtered.display_title}** ({plural(len(rows), 'row')})"
    total_line = filtered.total_line()
    summary = None
    if total_line:
        text += f"\n\n{total_line}"
        missing = filtered.missing_amounts()
        detail = plural(len(rows), "row")
        if missing:
            detail += f", {missing:,} {MISSING}"
        summary = DataCard(label=filtered.total_label or "Total", value=currency(filtered.total()), detail=detail)

    return list_answer(
        filtered,
        text,
        summary=summary,
        suggestions=["Export", "Show all"] + FALLBACK_MENU[:2],
        entities=company_entities([filtered.company_filter]) if filtered.company_filter else [],
    )


def build_disambiguation(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    """Ask the admin to pick one of the fuzzy candidates."""
    employees = [EmployeeOption(name=x.name, company=x.company) for x in c.candidates if x.entity == "employee"]
    companies = []
    for candidate in c.candidates:
        if candidate.entity != "company":
            continue
        record = snapshot.company(candidate.name)
        companies.append(CompanyOption(name=candidate.name, partnership=record.partnership if record else None))

    lines = numbered_list([x.label for x in c.candidates])
    text = f"I couldn't find an exact match for \"{c.fragment}\". Did you mean:\n\n{lines}"
    return BuildResult(
        answer=Answer(
            kind=AnswerKind.DISAMBIGUATION,
            text=text,
            rich_content=DidYouMeanContent(data=DidYouMean(employees=employees, companies=companies)),
            suggestions=candidate_suggestions(c.candidates),
            follow_up="Reply with a name or its number.",
            entities=[EntityName(name=x.name, entity=x.entity) for x in c.candidates],
        ),
        pending=c.pending,
    )


def build_duplicate_employees(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    """Several employees share the requested display name."""
    name = c.employees[0].full_name
    blocks = []
    for i, employee in enumerate(c.employees, start=1):
        lines = [f"**{i}. {employee.full_name}**", f"   • Status: {employee.status}"]
        if employee.company:
            lines.append(f"   • Company: {employee.company}")
        if employee.location:
            lines.append(f"   • Location: {employee.location}")
        if employee.employee_code:
            lines.append(f"   • Employee Code: {employee.employee_code}")
        if employee.outstanding_balance > 0:
            lines.append(f"   • Outstanding: {currency(employee.outstanding_balance)}")
        if employee.save_balance > 0:
            lines.append(f"   • Savings: {currency(employee.save_balance)}")
        blocks.append("\n".join(lines))

    text = (
        f"**Found {len(c.employees)} employees named \"{name}\":**\n\n"
        + "\n\n".join(blocks)
        + "\n\n_Which one do you mean? Reply with the number or the company._"
    )
    return BuildResult(
        answer=Answer(
            kind=AnswerKind.DISAMBIGUATION,
            text=text,
            rich_content=DataCardContent(data=DataCard(
                label="Duplicate Names Found",
                value=str(len(c.employees)),
                detail=f"{len(c.employees)} employees named \"{name}\"",
            )),
            suggestions=candidate_suggestions(c.candidates),
            entities=employee_entities(c.employees[:1]) + company_entities(e.company for e in c.employees),
        ),
        pending=c.pending,
    )


def build_not_found(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    if c.error == QueryError.MALFORMED and not c.query:
        return not_found("Ask me a question about your employees, companies, balances or savings.")
    if c.error == QueryError.MALFORMED:
        return not_found(
            "I'm not sure who you mean. Mention an employee or company by name, "
            "e.g. \"Tell me about Acme Co\".",
        )
    if c.fragment:
        return not_found(f"I couldn't find anyone or any company matching \"{c.fragment}\".")
    return not_found(UNKNOWN_TEXT)


def build_unknown(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    return not_found(UNKNOWN_TEXT)
