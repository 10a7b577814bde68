"""
Company Answer Builders.

Per-company answers come from two sources: the Client Summary row
(eligible, adopted, active, transfers) and the employee rows for that
company (balances, savings, headcount). A company can appear in only one of
them; missing figures are reported as missing, never as zero.
"""

from typing import List, Optional

from ewa_admin.data.records import CompanyRecord
from ewa_admin.data.snapshot import DataSnapshot
from ewa_admin.penny.builders.base import (
    BuildResult,
    company_entities,
    company_not_found,
    company_suggestions,
    drill_down_suggestions,
    employee_rows_view,
    list_answer,
    navigate,
    not_found,
    unique,
)
from ewa_admin.penny.context import ConversationContext
from ewa_admin.penny.formatting import MISSING, ListView, bullet_list, count, currency, percent, plural
from ewa_admin.penny.intent import Classification
from ewa_admin.penny.schemas import (
    Answer,
    AnswerKind,
    CompanyStats,
    CompanyStatsContent,
    DataCard,
    DataCardContent,
)

# Rows listed inline in the answer text before "...and N more"
INLINE_ROWS = 10


def _summary_row(snapshot: DataSnapshot, company: CompanyRecord) -> Optional[CompanyRecord]:
    """The Client Summary row for a company, if it has one."""
    return snapshot.company(company.name)


def _adoption_text(row: CompanyRecord) -> str:
    if not row.has_adoption_data:
        return MISSING
    return percent(row.adoption_rate)


def _active_percent(row: CompanyRecord) -> str:
    if row.adopted is None or row.active is None:
        return MISSING
    return percent(row.active_per_adopted)


def company_stats(snapshot: DataSnapshot, company: CompanyRecord) -> CompanyStats:
    """Profile figures for the company-stats card."""
    row = _summary_row(snapshot, company) or company
    employee_stats = snapshot.company_employee_stats(company.name)
    return CompanyStats(
        company=row.name,
        partnership=row.partnership,
        model=row.model,
        launch_date=row.launch_date,
        eligible=row.eligible,
        adopted=row.adopted,
        adoption_rate=_adoption_text(row),
        active=row.active,
        active_percent=_active_percent(row),
        transfers=row.transfers_in_period,
        total_transfer_amount=currency(row.total_transfer_amount),
        outstanding_total=currency(employee_stats.total_outstanding_balance) if employee_stats else None,
        admins=[a.admin_email for a in snapshot.admins_for(company.name)],
    )


def _answer(
    company: CompanyRecord,
    text: str,
    rich_content=None,
    kind: AnswerKind = AnswerKind.SINGLE_VALUE,
    page: Optional[str] = None,
    suggestions: Optional[List[str]] = None,
) -> BuildResult:
    return BuildResult(
        answer=Answer(
            kind=kind,
            text=text,
            rich_content=rich_content,
            suggestions=suggestions or company_suggestions(company.name),
            actions=[navigate(page)] if page else [],
            entities=company_entities([company.name]),
        ),
        remember_company=company.name,
    )


def _no_summary(company: CompanyRecord, what: str) -> BuildResult:
    """Answer for a figure the Client Summary doesn't have for this company."""
    return _answer(
        company,
        f"**{company.name}**: {what} is {MISSING} in the Client Summary.",
    )


# ============================================================================
# ONE COMPANY
# ============================================================================

def build_company_profile(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    stats = company_stats(snapshot, c.company)
    lines = []
    if stats.model:
        lines.append(f"• Model: **{stats.model}**")
    if stats.partnership:
        lines.append(f"• Partnership: **{stats.partnership}**")
    lines.extend([
        f"• Eligible: **{count(stats.eligible)}**",
        f"• Adopted (enrolled): **{count(stats.adopted)}**",
        f"• Adoption rate: **{stats.adoption_rate}**",
        f"• Active: **{count(stats.active)}**",
        f"• Active % of adopted: **{stats.active_percent}**",
        f"• Transfers in period: **{count(stats.transfers)}**",
        f"• Total transfer amount: **{stats.total_transfer_amount}**",
    ])
    if stats.outstanding_total is not None:
        lines.append(f"• Outstanding balances: **{stats.outstanding_total}**")
    if stats.admins:
        lines.append(f"• Admins: {', '.join(stats.admins)}")

    source = "Client Summary" if _summary_row(snapshot, c.company) else "employee data only"
    text = f"**{stats.company}** ({source}):\n\n" + "\n".join(lines)
    return _answer(
        c.company,
        text,
        rich_content=CompanyStatsContent(data=stats),
        kind=AnswerKind.ENTITY_PROFILE,
        page="clients",
    )


def build_company_live(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    row = _summary_row(snapshot, c.company)
    if row is None:
        return _answer(
            c.company,
            f"**{c.company.name}** is not in the Client Summary, so I can't confirm it is live.",
        )
    since = f" (launched {row.launch_date})" if row.launch_date else ""
    return _answer(c.company, f"**Yes**, {row.name} is live{since} (in Client Summary).", page="clients")


def build_company_model(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    row = _summary_row(snapshot, c.company)
    if row is None or not row.model:
        return _no_summary(c.company, "model")
    return _answer(
        c.company,
        f"**{row.name}** is using the **{row.model}** model (from Client Summary).",
        rich_content=DataCardContent(data=DataCard(label="Model", value=row.model, detail=row.name)),
    )


def build_company_admins(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    admins = snapshot.admins_for(c.company.name)
    name = c.company.name
    if not admins:
        return _answer(c.company, f"No admins listed for **{name}**.")
    if len(admins) == 1:
        return _answer(c.company, f"**{name}** admin email: **{admins[0].admin_email}**")
    listing = bullet_list([a.admin_email for a in admins])
    return _answer(c.company, f"**{name}** has **{len(admins)}** admins:\n\n{listing}")


def build_company_active(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    row = _summary_row(snapshot, c.company)
    if row is None or row.active is None:
        return _no_summary(c.company, "active user count")
    text = (
        f"**{row.name}** has **{plural(row.active, 'active user')}** "
        f"({count(row.adopted)} adopted / {count(row.eligible)} eligible)."
    )
    card = DataCardContent(data=DataCard(label="Active Users", value=count(row.active), detail=row.name))
    return _answer(c.company, text, rich_content=card, page="adoption")


def build_company_enrolled(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    row = _summary_row(snapshot, c.company)
    if row is None or row.adopted is None:
        return _no_summary(c.company, "enrollment count")
    text = f"**{row.name}** has **{count(row.adopted)} enrolled** (from Client Summary; {count(row.eligible)} eligible)."
    card = DataCardContent(data=DataCard(label="Enrolled", value=count(row.adopted), detail=row.name))
    return _answer(c.company, text, rich_content=card, page="adoption")


def build_company_adoption(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    row = _summary_row(snapshot, c.company)
    if row is None or not row.has_adoption_data:
        return _no_summary(c.company, "adoption rate")
    rate = percent(row.adoption_rate)
    text = (
        f"**{row.name}** adoption rate: **{rate}** "
        f"({count(row.adopted)} adopted out of {count(row.eligible)} eligible)."
    )
    card = DataCardContent(data=DataCard(
        label="Adoption Rate",
        value=rate,
        detail=f"{count(row.adopted)} of {count(row.eligible)} eligible",
    ))
    return _answer(c.company, text, rich_content=card, page="adoption")


def build_company_employee_count(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    employees = snapshot.employees_at(c.company.name)
    row = _summary_row(snapshot, c.company)
    text = f"**{c.company.name}** has **{plural(len(employees), 'enrolled employee')}** (from Employee Summary"
    if row is not None:
        text += f"; Client Summary shows {count(row.adopted)} adopted, {count(row.active)} active"
    text += ")."
    card = DataCardContent(data=DataCard(label="Enrolled Employees", value=f"{len(employees):,}", detail=c.company.name))
    return _answer(c.company, text, rich_content=card, page="employees")


def build_company_employees(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    employees = sorted(snapshot.employees_at(c.company.name), key=lambda e: e.full_name.lower())
    name = c.company.name
    if not employees:
        row = _summary_row(snapshot, c.company)
        if row is None:
            return company_not_found(name)
        return _answer(
            c.company,
            f"**{name}** (from Client Summary: **{count(row.adopted)}** adopted, **{count(row.active)}** active). "
            "No enrolled-employee list available for this company.",
        )

    view = employee_rows_view(f"Employees at {name}", employees)
    result = list_answer(
        view,
        f"**{plural(len(employees), 'employee')} at {name}:**",
        summary=DataCard(
            label="Employees",
            value=f"{len(employees):,}",
            detail=f"{sum(1 for e in employees if e.paused):,} paused",
        ),
        suggestions=drill_down_suggestions(employees),
        actions=[navigate("employees")],
        entities=company_entities([name]),
    )
    result.remember_company = name
    return result


def build_company_savings(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    name = c.company.name
    stats = snapshot.company_employee_stats(name)
    if stats is None:
        return _answer(c.company, f"**Savings at {name}:** No enrolled employee data available.")

    savers = sorted(
        (e for e in stats.employees if e.save_balance > 0),
        key=lambda e: (-e.save_balance, e.full_name.lower()),
    )
    text = (
        f"**Savings at {name}:**\n\n"
        f"• Open save accounts: **{stats.employees_with_savings_accounts}**\n"
        f"• Accounts with balance: **{stats.employees_with_savings_balance}**\n"
        f"• Total saved: **{currency(stats.total_savings_balance)}**"
    )
    summary = DataCard(
        label="Total Savings",
        value=currency(stats.total_savings_balance),
        detail=f"{stats.employees_with_savings_accounts} accounts • {stats.employees_with_savings_balance} with balance",
    )
    if not savers:
        return _answer(c.company, text, rich_content=DataCardContent(data=summary), page="savings")

    result = list_answer(
        employee_rows_view(f"Savings at {name}", savers, amount="savings", total_label="Total Savings"),
        text,
        summary=summary,
        kind=AnswerKind.SINGLE_VALUE,
        suggestions=company_suggestions(name),
        actions=[navigate("savings")],
        entities=company_entities([name]),
    )
    result.remember_company = name
    return result


def build_company_outstanding(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    name = c.company.name
    stats = snapshot.company_employee_stats(name)
    if stats is None:
        return _answer(c.company, f"**Outstanding at {name}:** No enrolled employee balance data.")

    at_company = set(stats.employees)
    owing = [e for e in snapshot.employees_with_outstanding_balance() if e in at_company]
    if not owing:
        return _answer(
            c.company,
            f"**Outstanding at {name}:** No employees with outstanding balances. Total: **{currency(0.0)}**.",
            rich_content=DataCardContent(data=DataCard(label="Outstanding Balance", value=currency(0.0), detail=name)),
        )

    text = (
        f"**Outstanding Balances at {name}:**\n\n"
        f"• Employees with balance: **{stats.employees_with_outstanding_balance}**\n"
        f"• Total outstanding: **{currency(stats.total_outstanding_balance)}**"
    )
    result = list_answer(
        employee_rows_view(
            f"Outstanding Balances at {name}", owing, amount="outstanding", total_label="Total Outstanding Balance",
        ),
        text,
        summary=DataCard(
            label="Outstanding Balance",
            value=currency(stats.total_outstanding_balance),
            detail=plural(len(owing), "employee"),
        ),
        kind=AnswerKind.SINGLE_VALUE,
        suggestions=drill_down_suggestions(owing, max_companies=0) + company_suggestions(name),
        actions=[navigate("balances")],
        entities=company_entities([name]),
    )
    result.remember_company = name
    return result


def build_company_transfers(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    row = _summary_row(snapshot, c.company)
    if row is None:
        return _no_summary(c.company, "transfer activity")
    average = None
    if row.transfers_in_period and row.total_transfer_amount is not None:
        average = row.total_transfer_amount / row.transfers_in_period
    text = (
        f"**Transfers at {row.name}:**\n\n"
        f"• Transfers in period: **{count(row.transfers_in_period)}**\n"
        f"• Total transfer amount: **{currency(row.total_transfer_amount)}**\n"
        f"• Average transfer: **{currency(average)}**"
    )
    card = DataCardContent(data=DataCard(
        label="Transfers",
        value=count(row.transfers_in_period),
        detail=currency(row.total_transfer_amount),
    ))
    return _answer(c.company, text, rich_content=card, page="transfers")


# ============================================================================
# COMPANY COUNTS AND SUMMARIES
# ============================================================================

def _company_view(title: str, companies: List[CompanyRecord]) -> ListView:
    rows = tuple(
        (co.name, co.partnership, co.model, co.adopted, co.eligible, _adoption_text(co))
        for co in companies
    )
    return ListView(
        title=title,
        headers=("Company", "Partnership", "Model", "Adopted", "Eligible", "Adoption Rate"),
        rows=rows,
        company_column=0,
    )


def _company_list(title: str, text: str, companies: List[CompanyRecord], label: str) -> BuildResult:
    ordered = sorted(companies, key=lambda co: co.name.lower())
    names = [co.name for co in ordered]
    inline = bullet_list(names[:INLINE_ROWS])
    more = f"\n\n...and {len(names) - INLINE_ROWS} more" if len(names) > INLINE_ROWS else ""
    return list_answer(
        _company_view(title, ordered),
        f"{text}\n\n{inline}{more}" if names else text,
        summary=DataCard(label=label, value=f"{len(ordered):,}"),
        suggestions=unique([f"Tell me about {n}" for n in names[:3]] + ["Show top companies by adoption"]),
        actions=[navigate("clients")],
        entities=company_entities(names[:INLINE_ROWS]),
    )


def build_company_count_live(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    companies = list(snapshot.companies)
    if not companies:
        return not_found("There are no companies in the Client Summary yet.")
    return _company_list(
        "Live Companies",
        f"**{len(companies):,}** companies are live (from Client Summary).",
        companies,
        "Live Companies",
    )


def build_partnership_companies(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    companies = snapshot.companies_in_partnership(c.partnership)
    n = len(companies)
    return _company_list(
        f"{c.partnership} Companies",
        f"**{c.partnership}** partnership has **{n}** client{'s' if n != 1 else ''} (from Client Summary).",
        companies,
        f"{c.partnership} Clients",
    )


def build_model_companies(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    companies = snapshot.companies_with_model(c.model)
    return _company_list(
        f"{c.model} Companies",
        f"**{len(companies)}** {c.model} companies (from Client Summary, MODEL column).",
        companies,
        f"{c.model} Companies",
    )


def build_company_summary(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    stats = snapshot.aggregate_stats
    if stats.total_companies == 0:
        return not_found("There are no companies in the Client Summary yet.")
    text = (
        "**Company Summary:**\n\n"
        f"• Total live companies: **{stats.total_companies:,}**\n"
        f"• Total eligible employees: **{stats.total_eligible:,}**\n"
        f"• Total adopted: **{stats.total_adopted:,}**\n"
        f"• Overall adoption rate: **{percent(stats.overall_adoption_rate)}**\n"
        f"• Total transfers (all-time): **{stats.total_transfers:,}**\n"
        f"• Total transfer amount: **{currency(stats.total_transfer_amount)}**"
    )
    if stats.companies_missing_counts:
        text += f"\n\n_{plural(stats.companies_missing_counts, 'company', 'companies')} with counts {MISSING}._"
    return BuildResult(
        answer=Answer(
            kind=AnswerKind.SINGLE_VALUE,
            text=text,
            rich_content=DataCardContent(data=DataCard(
                label="Live Companies",
                value=f"{stats.total_companies:,}",
                detail=f"{percent(stats.overall_adoption_rate)} overall adoption",
            )),
            suggestions=["Show top companies by adoption", "Top clients by transfer amount", "Show outstanding balances"],
            actions=[navigate("clients")],
        ),
    )

