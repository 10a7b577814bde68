"""SQL-backed Data Provider.

Reads the synced ``companies``, ``employees`` and ``company_admins`` tables
into a DataSnapshot. Used when PENNY_DATA_SOURCE=database.
"""
import logging
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from ewa_admin.data.provider import DataProvider, DataUnavailable
from ewa_admin.data.records import AdminRecord, CompanyRecord, EmployeeRecord
from ewa_admin.data.snapshot import DataSnapshot
from ewa_admin.models import Company, Employee

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(value)
    return float(value)


def employee_record(row: Employee) -> EmployeeRecord:
    return EmployeeRecord(
        full_name=row.full_name,
        company=row.company_name or "",
        employee_code=row.employee_code or "",
        paused=bool(row.paused),
        location=row.location or "",
        paytype=row.paytype or "",
        has_savings_acct=bool(row.has_savings_acct),
        save_balance=_to_float(row.save_balance) or 0.0,
        outstanding_balance=_to_float(row.outstanding_balance) or 0.0,
        lifetime_total_transfers=row.lifetime_total_transfers,
        lifetime_volume_usd=_to_float(row.lifetime_volume_usd),
        transfers_30d=row.transfers_30d,
        volume_30d_usd=_to_float(row.volume_30d_usd),
        transfers_90d=row.transfers_90d,
        volume_90d_usd=_to_float(row.volume_90d_usd),
    )


def company_record(row: Company) -> CompanyRecord:
    return CompanyRecord(
        name=row.name,
        partnership=row.partnership,
        model=row.model,
        launch_date=row.launch_date.isoformat() if row.launch_date else None,
        eligible=row.eligible,
        adopted=row.adopted,
        active=row.active,
        transfers_in_period=row.transfers_in_period,
        total_transfer_amount=_to_float(row.total_transfer_amount),
    )


class SqlDataProvider(DataProvider):
    """Provider reading the relational tables through an async session."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None, ttl_seconds: Optional[int] = None):
        super().__init__(ttl_seconds=ttl_seconds)
        self._session_factory = session_factory

    def _sessions(self) -> async_sessionmaker:
        if self._session_factory is None:
            from ewa_admin.database import AsyncSessionLocal
            self._session_factory = AsyncSessionLocal
        return self._session_factory

    async def _load(self) -> DataSnapshot:
        try:
            async with self._sessions()() as db:
                return await load_snapshot_from_db(db)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load snapshot from database: {e}")
            raise DataUnavailable("Database unavailable") from e


async def load_snapshot_from_db(db: AsyncSession) -> DataSnapshot:
    """Read every company (with admins) and employee into a snapshot."""
    result = await db.execute(
        select(Company)
        .options(selectinload(Company.admins))
        .order_by(Company.name)
    )
    companies = result.scalars().all()

    result = await db.execute(select(Employee).order_by(Employee.full_name))
    employees = result.scalars().all()

    admins: List[AdminRecord] = [
        AdminRecord(company=company.name, admin_email=admin.admin_email)
        for company in companies
        for admin in company.admins
    ]

    logger.info(f"Loaded snapshot from database: {len(employees)} employees, {len(companies)} companies")
    return DataSnapshot(
        employees=[employee_record(e) for e in employees],
        companies=[company_record(c) for c in companies],
        admins=admins,
    )
