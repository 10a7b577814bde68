"""
Employee Answer Builders.

Profile, status, balances, savings, transfers and location for one employee,
plus the employee lists (paused, everyone, by location) and employee
comparisons.
"""

from typing import Callable, Dict, Optional, Tuple

from ewa_admin.data.records import EmployeeRecord
from ewa_admin.data.snapshot import DataSnapshot
from ewa_admin.penny.builders.base import (
    BuildResult,
    comparison_result,
    company_entities,
    drill_down_suggestions,
    employee_entities,
    employee_rows_view,
    employee_suggestions,
    list_answer,
    navigate,
    not_found,
    unique,
)
from ewa_admin.penny.context import ConversationContext
from ewa_admin.penny.formatting import MISSING, count, currency, plural
from ewa_admin.penny.intent import Classification, Metric
from ewa_admin.penny.schemas import Answer, AnswerKind, CardField, DataCard, DataCardContent


def _employee_card(employee: EmployeeRecord, label: str, value: str, detail: Optional[str] = None) -> DataCardContent:
    fields = [CardField(label="Status", value=employee.status)]
    if employee.company:
        fields.append(CardField(label="Company", value=employee.company))
    if employee.location:
        fields.append(CardField(label="Location", value=employee.location))
    return DataCardContent(data=DataCard(label=label, value=value, detail=detail or employee.full_name, fields=fields))


def _single(
    employee: EmployeeRecord,
    text: str,
    card: DataCardContent,
    kind: AnswerKind = AnswerKind.SINGLE_VALUE,
    page: Optional[str] = None,
) -> BuildResult:
    return BuildResult(
        answer=Answer(
            kind=kind,
            text=text,
            rich_content=card,
            suggestions=employee_suggestions(employee),
            actions=[navigate(page)] if page else [],
            entities=employee_entities([employee]) + company_entities([employee.company]),
        ),
        remember_employee=employee,
    )


# ============================================================================
# ONE EMPLOYEE
# ============================================================================

def build_employee_profile(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    employee = c.employee
    lines = [f"**{employee.full_name}**", "", f"• Status: **{employee.status}**"]
    if employee.company:
        lines.append(f"• Company: {employee.company}")
    if employee.location:
        lines.append(f"• Location: {employee.location}")
    if employee.paytype:
        lines.append(f"• Pay type: {employee.paytype}")
    if employee.employee_code:
        lines.append(f"• Employee code: {employee.employee_code}")
    if employee.has_outstanding_balance:
        lines.append(f"• Outstanding balance: **{currency(employee.outstanding_balance)}**")
    if employee.has_savings_acct or employee.save_balance > 0:
        lines.append(f"• Savings balance: **{currency(employee.save_balance)}**")

    card = _employee_card(employee, "Employee", employee.full_name, detail=employee.status)
    card.data.fields.extend([
        CardField(label="Outstanding", value=currency(employee.outstanding_balance)),
        CardField(label="Savings", value=currency(employee.save_balance) if employee.has_savings_acct else "No account"),
    ])
    return _single(employee, "\n".join(lines), card, kind=AnswerKind.ENTITY_PROFILE, page="employees")


def build_employee_status(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    employee = c.employee
    if employee.paused:
        message = "is currently **Paused** and cannot make transfers"
    else:
        message = "is **Active** and enrolled in the EWA program"
    text = f"**{employee.full_name}** {message}."
    return _single(employee, text, _employee_card(employee, "Status", employee.status), page="employees")


def build_employee_location(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    employee = c.employee
    place = ", ".join(p for p in (employee.company, employee.location) if p) or MISSING
    if employee.company and employee.location:
        place = f"{employee.company} ({employee.location})"
    text = f"**{employee.full_name}** works at {place}."
    return _single(employee, text, _employee_card(employee, "Works at", place))


def build_employee_outstanding(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    employee = c.employee
    if employee.has_outstanding_balance:
        text = f"**{employee.full_name}** has an outstanding balance of **{currency(employee.outstanding_balance)}**."
    else:
        text = f"**{employee.full_name}** has no outstanding balance."
    card = _employee_card(employee, "Outstanding Balance", currency(employee.outstanding_balance))
    return _single(employee, text, card, page="balances")


def build_employee_savings(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    employee = c.employee
    if not employee.has_savings_acct and employee.save_balance <= 0:
        text = f"**{employee.full_name}** does not have a savings account."
        value = "No account"
    else:
        text = f"**{employee.full_name}** has a savings balance of **{currency(employee.save_balance)}**."
        value = currency(employee.save_balance)
    return _single(employee, text, _employee_card(employee, "Savings Balance", value), page="savings")


def build_employee_transfers(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    employee = c.employee
    lines = [
        f"**{employee.full_name}** transfers:",
        "",
        f"• Lifetime: **{count(employee.lifetime_total_transfers)}** transfers, **{currency(employee.lifetime_volume_usd)}**",
        f"• Last 90 days: **{count(employee.transfers_90d)}** transfers, **{currency(employee.volume_90d_usd)}**",
        f"• Last 30 days: **{count(employee.transfers_30d)}** transfers, **{currency(employee.volume_30d_usd)}**",
    ]
    card = _employee_card(employee, "Lifetime Transfers", count(employee.lifetime_total_transfers),
                          detail=currency(employee.lifetime_volume_usd))
    return _single(employee, "\n".join(lines), card, page="transfers")


# ============================================================================
# EMPLOYEE LISTS
# ============================================================================

def build_paused_employees(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    """Paused employees, everywhere or at one company."""
    if c.company is not None:
        pool = snapshot.employees_at(c.company.name)
        title = f"Paused Employees at {c.company.name}"
        where = f" at **{c.company.name}**"
    else:
        pool = snapshot.employees
        title = "Paused Employees"
        where = ""
    paused = [e for e in pool if e.paused]

    if not paused:
        result = BuildResult(
            answer=Answer(
                kind=AnswerKind.SINGLE_VALUE,
                text=f"There are no paused employees{where} currently.",
                rich_content=DataCardContent(data=DataCard(label="Paused Employees", value="0")),
                suggestions=["Show company stats", "Show outstanding balances", "Show savings stats"],
                entities=company_entities([c.company.name]) if c.company else [],
            ),
        )
        result.remember_company = c.company.name if c.company else None
        return result

    view = employee_rows_view(title, paused)
    text = f"There are **{plural(len(paused), 'paused employee')}**{where}."
    result = list_answer(
        view,
        text,
        summary=DataCard(label="Paused Employees", value=str(len(paused)), detail=c.company.name if c.company else None),
        suggestions=drill_down_suggestions(paused),
        actions=[navigate("employees")],
        entities=company_entities([c.company.name]) if c.company else [],
    )
    result.remember_company = c.company.name if c.company else None
    return result


def build_employee_list(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    employees = sorted(snapshot.employees, key=lambda e: e.full_name.lower())
    if not employees:
        return not_found("There are no enrolled employees in the current data.")
    paused = sum(1 for e in employees if e.paused)
    text = (
        f"**{plural(len(employees), 'Enrolled Employee')}:**\n"
        f"• Active: {len(employees) - paused:,}\n"
        f"• Paused: {paused:,}"
    )
    return list_answer(
        employee_rows_view("Enrolled Employees", employees),
        text,
        summary=DataCard(label="Enrolled Employees", value=f"{len(employees):,}",
                         detail=f"{len(employees) - paused:,} active • {paused:,} paused"),
        suggestions=drill_down_suggestions(employees),
        actions=[navigate("employees")],
    )


def build_employees_by_location(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    employees = sorted(snapshot.employees_in_location(c.location), key=lambda e: e.full_name.lower())
    if not employees:
        return not_found(f"No employees found at location \"{c.location}\".")
    return list_answer(
        employee_rows_view(f"Employees in {c.location}", employees),
        f"**{plural(len(employees), 'employee')} at {c.location}:**",
        suggestions=drill_down_suggestions(employees),
        actions=[navigate("employees")],
    )


# ============================================================================
# COMPARISON
# ============================================================================

_EMPLOYEE_METRICS: Dict[Metric, Tuple[str, Callable[[EmployeeRecord], Optional[float]], Callable]] = {
    Metric.OUTSTANDING: ("outstanding balance", lambda e: e.outstanding_balance, currency),
    Metric.SAVINGS: ("savings balance", lambda e: e.save_balance, currency),
    Metric.TRANSFER_COUNT: ("lifetime transfers", lambda e: e.lifetime_total_transfers, count),
    Metric.TRANSFER_AMOUNT: ("lifetime transfer volume", lambda e: e.lifetime_volume_usd, currency),
}


def build_compare_employees(c: Classification, snapshot: DataSnapshot, context: ConversationContext) -> BuildResult:
    first, second = c.employees[0], c.employees[1]
    label, value, fmt = _EMPLOYEE_METRICS.get(c.metric, _EMPLOYEE_METRICS[Metric.OUTSTANDING])
    result = comparison_result(
        first.full_name, second.full_name, label, value(first), value(second), fmt,
        entity="employee",
    )
    result.answer.suggestions = unique(
        [f"Tell me about {first.full_name}", f"Tell me about {second.full_name}"] + drill_down_suggestions([first, second])
    )
    result.remember_employee = second
    return result
