"""Immutable data snapshot shared by every conversation.

A snapshot is the result of one successful sync. Derived views (per-company
employee lists, outstanding balances, aggregate stats) are computed once
when the snapshot is built.
"""
import itertools
import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ewa_admin.data.records import (
    AdminRecord,
    AggregateStats,
    CompanyEmployeeStats,
    CompanyRecord,
    EmployeeRecord,
)

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"[a-z0-9]+(?:[&'.\-][a-z0-9]+)*")
_version_counter = itertools.count(1)


def name_tokens(text: str) -> List[str]:
    """Lower-cased word tokens of a name, with possessive 's dropped."""
    tokens = []
    for token in TOKEN_RE.findall(text.lower().replace("’", "'")):
        if token.endswith("'s"):
            token = token[:-2]
        if token:
            tokens.append(token)
    return tokens


def name_key(text: str) -> str:
    """Normalized lookup key: case-insensitive, whitespace and punctuation collapsed."""
    return " ".join(name_tokens(text))


class DataSnapshot:
    """Employees, companies and admins as of one sync."""

    def __init__(
        self,
        employees: Iterable[EmployeeRecord],
        companies: Iterable[CompanyRecord],
        admins: Iterable[AdminRecord] = (),
        synced_at: Optional[datetime] = None,
    ):
        self.employees: Tuple[EmployeeRecord, ...] = tuple(employees)
        self.companies: Tuple[CompanyRecord, ...] = tuple(companies)
        self.admins: Tuple[AdminRecord, ...] = tuple(admins)
        self.synced_at = synced_at or datetime.now(timezone.utc)
        self.version = next(_version_counter)

        self._companies_by_key: Dict[str, CompanyRecord] = {}
        for company in self.companies:
            key = name_key(company.name)
            if key in self._companies_by_key:
                logger.warning(f"Duplicate company name in snapshot: {company.name!r}; keeping the first row")
                continue
            self._companies_by_key[key] = company
            if company.eligible is not None and company.adopted is not None and company.adopted > company.eligible:
                logger.warning(
                    f"Company {company.name!r} reports adopted={company.adopted} > eligible={company.eligible}"
                )

        self._employees_by_company: Dict[str, List[EmployeeRecord]] = {}
        for employee in self.employees:
            key = name_key(employee.company) if employee.company else ""
            self._employees_by_company.setdefault(key, []).append(employee)

        self._admins_by_company: Dict[str, List[AdminRecord]] = {}
        for admin in self.admins:
            self._admins_by_company.setdefault(name_key(admin.company), []).append(admin)

        self._outstanding = tuple(sorted(
            (e for e in self.employees if e.outstanding_balance > 0),
            key=lambda e: (-e.outstanding_balance, e.full_name.lower()),
        ))
        self._aggregate = AggregateStats.compute(self.employees, self.companies)
        self._derived: Dict[str, Any] = {}

    def derived(self, key: str, factory: Callable[[], Any]) -> Any:
        """Memoize a structure derived from this snapshot (built once, on first use)."""
        if key not in self._derived:
            self._derived[key] = factory()
        return self._derived[key]

    @property
    def is_empty(self) -> bool:
        return not self.employees and not self.companies

    @property
    def aggregate_stats(self) -> AggregateStats:
        return self._aggregate

    def company(self, name: str) -> Optional[CompanyRecord]:
        """Exact (normalized) company lookup."""
        return self._companies_by_key.get(name_key(name))

    def employees_at(self, company_name: str) -> Tuple[EmployeeRecord, ...]:
        return tuple(self._employees_by_company.get(name_key(company_name), ()))

    def company_employee_stats(self, company_name: str) -> Optional[CompanyEmployeeStats]:
        employees = self.employees_at(company_name)
        if not employees:
            return None
        company = self.company(company_name)
        display = company.name if company else employees[0].company
        return CompanyEmployeeStats.from_employees(display, employees)

    def employees_with_outstanding_balance(self) -> Tuple[EmployeeRecord, ...]:
        """Employees owing money, largest balance first (ties by name)."""
        return self._outstanding

    def admins_for(self, company_name: str) -> List[AdminRecord]:
        return list(self._admins_by_company.get(name_key(company_name), ()))

    def partnerships(self) -> List[str]:
        seen: Dict[str, str] = {}
        for company in self.companies:
            if company.partnership and company.partnership.strip():
                seen.setdefault(name_key(company.partnership), company.partnership.strip())
        return sorted(seen.values(), key=str.lower)

    def companies_in_partnership(self, partnership: str) -> List[CompanyRecord]:
        key = name_key(partnership)
        return [c for c in self.companies if c.partnership and name_key(c.partnership) == key]

    def models(self) -> List[str]:
        seen: Dict[str, str] = {}
        for company in self.companies:
            if company.model and company.model.strip():
                seen.setdefault(name_key(company.model), company.model.strip())
        return sorted(seen.values(), key=str.lower)

    def companies_with_model(self, model: str) -> List[CompanyRecord]:
        key = name_key(model)
        return [c for c in self.companies if c.model and name_key(c.model) == key]

    def locations(self) -> List[str]:
        seen: Dict[str, str] = {}
        for employee in self.employees:
            if employee.location and employee.location.strip():
                seen.setdefault(name_key(employee.location), employee.location.strip())
        return sorted(seen.values(), key=str.lower)

    def employees_in_location(self, location: str) -> List[EmployeeRecord]:
        key = name_key(location)
        return [e for e in self.employees if e.location and name_key(e.location) == key]
