"""Read-only record types served by the data provider.

Records are frozen dataclasses rather than ORM rows so a snapshot can be
shared between concurrent conversations without any session state.
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class EmployeeRecord:
    """One enrolled employee."""
    full_name: str
    company: str = ""
    employee_code: str = ""
    paused: bool = False
    location: str = ""
    paytype: str = ""
    has_savings_acct: bool = False
    save_balance: float = 0.0
    outstanding_balance: float = 0.0
    lifetime_total_transfers: Optional[int] = None
    lifetime_volume_usd: Optional[float] = None
    transfers_30d: Optional[int] = None
    volume_30d_usd: Optional[float] = None
    transfers_90d: Optional[int] = None
    volume_90d_usd: Optional[float] = None

    @property
    def status(self) -> str:
        return "Paused" if self.paused else "Active"

    @property
    def has_outstanding_balance(self) -> bool:
        return self.outstanding_balance > 0


@dataclass(frozen=True)
class CompanyRecord:
    """One live company from the client summary.

    Counts are Optional: a missing cell stays None so answers can say the
    figure is unavailable instead of reporting a zero.
    """
    name: str
    partnership: Optional[str] = None
    model: Optional[str] = None
    launch_date: Optional[str] = None
    eligible: Optional[int] = None
    adopted: Optional[int] = None
    active: Optional[int] = None
    transfers_in_period: Optional[int] = None
    total_transfer_amount: Optional[float] = None

    @property
    def adoption_rate(self) -> float:
        """adopted / eligible, or 0 when nobody is eligible."""
        return adoption_rate(self.adopted, self.eligible)

    @property
    def active_per_adopted(self) -> float:
        if not self.adopted or self.active is None:
            return 0.0
        return self.active / self.adopted

    @property
    def has_adoption_data(self) -> bool:
        return self.eligible is not None and self.adopted is not None


@dataclass(frozen=True)
class AdminRecord:
    """An admin email listed for a company."""
    company: str
    admin_email: str


def adoption_rate(adopted: Optional[int], eligible: Optional[int]) -> float:
    """Adoption rate as a 0-1 fraction; never divides by zero."""
    if not eligible or eligible <= 0 or adopted is None:
        return 0.0
    return adopted / eligible


@dataclass(frozen=True)
class CompanyEmployeeStats:
    """Employee-level rollup for one company."""
    company_name: str
    total_employees: int
    active_employees: int
    paused_employees: int
    employees_with_savings_accounts: int
    employees_with_savings_balance: int
    total_savings_balance: float
    employees_with_outstanding_balance: int
    total_outstanding_balance: float
    employees: Tuple[EmployeeRecord, ...] = field(default_factory=tuple)

    @classmethod
    def from_employees(cls, company_name: str, employees: Iterable[EmployeeRecord]) -> "CompanyEmployeeStats":
        rows = tuple(employees)
        with_savings_balance = [e for e in rows if e.save_balance > 0]
        with_outstanding = [e for e in rows if e.outstanding_balance > 0]
        return cls(
            company_name=company_name,
            total_employees=len(rows),
            active_employees=sum(1 for e in rows if not e.paused),
            paused_employees=sum(1 for e in rows if e.paused),
            employees_with_savings_accounts=sum(1 for e in rows if e.has_savings_acct),
            employees_with_savings_balance=len(with_savings_balance),
            total_savings_balance=sum(e.save_balance for e in with_savings_balance),
            employees_with_outstanding_balance=len(with_outstanding),
            total_outstanding_balance=sum(e.outstanding_balance for e in with_outstanding),
            employees=rows,
        )


@dataclass(frozen=True)
class AggregateStats:
    """Portal-wide totals across every company and employee."""
    total_employees: int
    active_employees: int
    paused_employees: int
    employees_with_outstanding_balance: int
    total_outstanding_balance: float
    avg_outstanding_balance: float
    employees_with_savings_accounts: int
    employees_with_savings_balance: int
    total_savings_balance: float
    avg_savings_balance: float
    total_companies: int
    total_eligible: int
    total_adopted: int
    total_active: int
    overall_adoption_rate: float
    total_transfers: int
    total_transfer_amount: float
    avg_transfer_amount: float
    companies_missing_counts: int = 0

    @classmethod
    def compute(cls, employees: Iterable[EmployeeRecord], companies: Iterable[CompanyRecord]) -> "AggregateStats":
        employees = list(employees)
        companies = list(companies)

        paused = sum(1 for e in employees if e.paused)
        with_balance = [e for e in employees if e.outstanding_balance > 0]
        total_outstanding = sum(e.outstanding_balance for e in with_balance)
        with_savings_balance = [e for e in employees if e.save_balance > 0]
        total_savings = sum(e.save_balance for e in with_savings_balance)

        total_eligible = sum(c.eligible or 0 for c in companies)
        total_adopted = sum(c.adopted or 0 for c in companies)
        total_active = sum(c.active or 0 for c in companies)
        total_transfers = sum(c.transfers_in_period or 0 for c in companies)
        total_transfer_amount = sum(c.total_transfer_amount or 0.0 for c in companies)
        missing = sum(
            1 for c in companies
            if c.eligible is None or c.adopted is None or c.transfers_in_period is None
        )

        return cls(
            total_employees=len(employees),
            active_employees=len(employees) - paused,
            paused_employees=paused,
            employees_with_outstanding_balance=len(with_balance),
            total_outstanding_balance=total_outstanding,
            avg_outstanding_balance=total_outstanding / len(with_balance) if with_balance else 0.0,
            employees_with_savings_accounts=sum(1 for e in employees if e.has_savings_acct),
            employees_with_savings_balance=len(with_savings_balance),
            total_savings_balance=total_savings,
            avg_savings_balance=total_savings / len(with_savings_balance) if with_savings_balance else 0.0,
            total_companies=len(companies),
            total_eligible=total_eligible,
            total_adopted=total_adopted,
            total_active=total_active,
            overall_adoption_rate=adoption_rate(total_adopted, total_eligible),
            total_transfers=total_transfers,
            total_transfer_amount=total_transfer_amount,
            avg_transfer_amount=total_transfer_amount / total_transfers if total_transfers > 0 else 0.0,
            companies_missing_counts=missing,
        )


@dataclass(frozen=True)
class Suggestions:
    """Did-you-mean candidates, best first."""
    employees: List[str] = field(default_factory=list)
    companies: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.employees and not self.companies
