"""Shared test fixtures and configuration for the EWA admin backend tests."""
import pytest

from ewa_admin.data.provider import SnapshotDataProvider
from ewa_admin.data.records import AdminRecord, CompanyRecord, EmployeeRecord
from ewa_admin.data.snapshot import DataSnapshot
from ewa_admin.penny.context import ConversationContext, ConversationStore
from ewa_admin.penny.resolver import EntityResolver

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


# ============================================================================
# SAMPLE DATA
# ============================================================================

@pytest.fixture
def sample_companies():
    """Client Summary rows, including the zero-eligible and missing-count edge cases."""
    return [
        CompanyRecord(
            name="Acme Co", partnership="OSV", model="Direct", launch_date="2023-01-15",
            eligible=200, adopted=50, active=30, transfers_in_period=1200, total_transfer_amount=150000.0,
        ),
        CompanyRecord(
            name="Globex", partnership="OSV", model="Reseller", launch_date="2023-06-01",
            eligible=100, adopted=60, active=40, transfers_in_period=800, total_transfer_amount=90000.0,
        ),
        CompanyRecord(
            name="Initech", model="Direct", launch_date="2024-02-01",
            eligible=0, adopted=0, active=0, transfers_in_period=0, total_transfer_amount=0.0,
        ),
        CompanyRecord(name="Hooli", model="Reseller", eligible=0, adopted=None),
        CompanyRecord(name="Umbrella Corp", partnership="Summit", model="Direct", eligible=50),
        CompanyRecord(
            name="Stark Industries", partnership="Summit", model="Reseller", launch_date="2022-11-01",
            eligible=80, adopted=20, active=10, transfers_in_period=300, total_transfer_amount=25000.0,
        ),
    ]


@pytest.fixture
def sample_employees():
    """Enrolled employees. "Alex Kim" works at two companies; "Jane Smith" is unique."""
    return [
        EmployeeRecord(
            full_name="Jane Smith", company="Acme Co", employee_code="E001", location="Austin",
            paytype="Salary", has_savings_acct=True, save_balance=250.0, outstanding_balance=120.5,
            lifetime_total_transfers=14, lifetime_volume_usd=2100.0,
            transfers_30d=2, volume_30d_usd=300.0, transfers_90d=5, volume_90d_usd=800.0,
        ),
        EmployeeRecord(
            full_name="John Doe", company="Acme Co", employee_code="E002", paused=True,
            location="Austin", paytype="Hourly", outstanding_balance=300.0,
        ),
        EmployeeRecord(
            full_name="Alex Kim", company="Acme Co", employee_code="E003", location="Denver",
            paytype="Hourly", outstanding_balance=50.0,
        ),
        EmployeeRecord(
            full_name="Alex Kim", company="Globex", employee_code="E101", paused=True,
            location="Chicago", paytype="Salary", has_savings_acct=True, save_balance=75.0,
        ),
        EmployeeRecord(
            full_name="Maria Garcia", company="Globex", employee_code="E102", location="Chicago",
            paytype="Salary", has_savings_acct=True, save_balance=500.0,
        ),
        EmployeeRecord(
            full_name="Bob Lee", company="Stark Industries", employee_code="E201", paused=True,
            location="Denver", paytype="Hourly", outstanding_balance=80.0,
        ),
        EmployeeRecord(
            full_name="Priya Patel", company="Initech", employee_code="E301", location="Austin",
            paytype="Salary",
        ),
    ]


@pytest.fixture
def sample_snapshot(sample_employees, sample_companies):
    """A small snapshot covering every answer builder."""
    return DataSnapshot(
        employees=sample_employees,
        companies=sample_companies,
        admins=[
            AdminRecord(company="Acme Co", admin_email="hr@acme.example"),
            AdminRecord(company="Acme Co", admin_email="payroll@acme.example"),
            AdminRecord(company="Globex", admin_email="admin@globex.example"),
        ],
    )


@pytest.fixture
def similar_companies_snapshot():
    """Two companies that share a first word, so "Acme" alone is ambiguous."""
    return DataSnapshot(
        employees=[
            EmployeeRecord(full_name="Jane Smith", company="Acme Co", outstanding_balance=120.5),
            EmployeeRecord(full_name="Sam Ortiz", company="Acme Labs", outstanding_balance=40.0),
        ],
        companies=[CompanyRecord(name="Acme Co"), CompanyRecord(name="Acme Labs")],
    )


@pytest.fixture
def resolver(sample_snapshot):
    return EntityResolver.for_snapshot(sample_snapshot)


@pytest.fixture
def provider(sample_snapshot):
    return SnapshotDataProvider(snapshot=sample_snapshot)


@pytest.fixture
def store():
    """A fresh conversation store per test."""
    return ConversationStore(ttl_seconds=1800, max_conversations=100)


@pytest.fixture
def empty_context():
    return ConversationContext()
