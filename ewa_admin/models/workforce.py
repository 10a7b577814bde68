"""Workforce models: Company, Employee, CompanyAdmin.

These tables mirror the reporting exports the portal syncs from (client
summary, enrolled employees, admin summary). Penny only ever reads them.
"""
import secrets

from sqlalchemy import Column, String, DateTime, Date, Numeric, Boolean, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ewa_admin.database import Base


def generate_id(prefix: str) -> str:
    """Generate a prefixed random ID, e.g. ``emp_3f9a0c1b2d4e``."""
    return f"{prefix}_{secrets.token_hex(6)}"


class Company(Base):
    """A live client company (one row of the client summary)."""

    __tablename__ = "companies"

    id = Column(String, primary_key=True, default=lambda: generate_id("co"))

    # Core Info
    name = Column(String, nullable=False, unique=True, index=True)
    partnership = Column(String, nullable=True, index=True)  # e.g. "OSV"; a company has zero or one
    model = Column(String, nullable=True)  # business model, e.g. "Direct" | "Reseller"
    launch_date = Column(Date, nullable=True)

    # Adoption funnel - adopted <= eligible, active is a subset of adopted
    eligible = Column(Integer, nullable=True)
    adopted = Column(Integer, nullable=True)
    active = Column(Integer, nullable=True)

    # Transfer activity since launch
    transfers_in_period = Column(Integer, nullable=True)
    total_transfer_amount = Column(Numeric(precision=14, scale=2), nullable=True)

    # Sync state
    last_synced_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    admins = relationship("CompanyAdmin", back_populates="company", cascade="all, delete-orphan")


class Employee(Base):
    """An enrolled employee (one row of the enrolled employees export).

    Full names are NOT unique - two people called "Jane Smith" can work at
    different companies, so lookups by name may return several rows.
    """

    __tablename__ = "employees"

    id = Column(String, primary_key=True, default=lambda: generate_id("emp"))
    employee_code = Column(String, nullable=True, index=True)

    # Identity
    full_name = Column(String, nullable=False, index=True)
    company_name = Column(String, nullable=True, index=True)  # matches companies.name
    location = Column(String, nullable=True)
    paytype = Column(String, nullable=True)  # "Salary" | "Hourly"

    # Enrollment
    paused = Column(Boolean, nullable=False, default=False)

    # Financials
    has_savings_acct = Column(Boolean, nullable=False, default=False)
    save_balance = Column(Numeric(precision=12, scale=2), nullable=True)
    outstanding_balance = Column(Numeric(precision=12, scale=2), nullable=True)

    # Transfer activity
    lifetime_total_transfers = Column(Integer, nullable=True)
    lifetime_volume_usd = Column(Numeric(precision=14, scale=2), nullable=True)
    transfers_30d = Column(Integer, nullable=True)
    volume_30d_usd = Column(Numeric(precision=12, scale=2), nullable=True)
    transfers_90d = Column(Integer, nullable=True)
    volume_90d_usd = Column(Numeric(precision=12, scale=2), nullable=True)

    last_synced_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class CompanyAdmin(Base):
    """An admin contact for a company. A company may list several."""

    __tablename__ = "company_admins"
    __table_args__ = (
        UniqueConstraint("company_id", "admin_email", name="uq_company_admin_email"),
    )

    id = Column(String, primary_key=True, default=lambda: generate_id("adm"))
    company_id = Column(String, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    admin_email = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    company = relationship("Company", back_populates="admins")
