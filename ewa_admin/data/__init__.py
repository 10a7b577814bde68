"""Read-only access to employees, companies and partnerships."""
from ewa_admin.data.provider import (
    DataProvider,
    DataUnavailable,
    SnapshotDataProvider,
    get_provider,
    set_provider,
)
from ewa_admin.data.records import (
    AdminRecord,
    AggregateStats,
    CompanyEmployeeStats,
    CompanyRecord,
    EmployeeRecord,
    Suggestions,
)
from ewa_admin.data.snapshot import DataSnapshot

__all__ = [
    "DataProvider",
    "DataUnavailable",
    "SnapshotDataProvider",
    "get_provider",
    "set_provider",
    "AdminRecord",
    "AggregateStats",
    "CompanyEmployeeStats",
    "CompanyRecord",
    "EmployeeRecord",
    "Suggestions",
    "DataSnapshot",
]
