"""Tests for DataSnapshot and its derived views."""
from unittest.mock import MagicMock

import pytest

from ewa_admin.data.records import CompanyRecord, EmployeeRecord, adoption_rate
from ewa_admin.data.snapshot import DataSnapshot, name_key, name_tokens


class TestNameKey:
    """Normalized lookup keys."""

    @pytest.mark.parametrize("text,expected", [
        ("Acme Co", "acme co"),
        ("  ACME   co. ", "acme co"),
        ("Jane's", "jane"),
        ("O’Brien", "o'brien"),
        ("AT&T", "at&t"),
        ("", ""),
    ])
    def test_name_key(self, text, expected):
        assert name_key(text) == expected

    def test_tokens(self):
        assert name_tokens("Stark Industries' payroll") == ["stark", "industries", "payroll"]


class TestLookups:
    """Exact lookups by company, partnership, model and location."""

    def test_company_is_case_insensitive(self, sample_snapshot):
        assert sample_snapshot.company("acme co").name == "Acme Co"
        assert sample_snapshot.company("Nowhere Inc") is None

    def test_duplicate_company_keeps_first(self):
        snapshot = DataSnapshot(
            employees=[],
            companies=[CompanyRecord(name="Acme Co", eligible=10), CompanyRecord(name="ACME CO", eligible=99)],
        )
        assert snapshot.company("Acme Co").eligible == 10

    def test_employees_at(self, sample_snapshot):
        names = [e.full_name for e in sample_snapshot.employees_at("globex")]
        assert names == ["Alex Kim", "Maria Garcia"]
        assert sample_snapshot.employees_at("Hooli") == ()

    def test_admins_for(self, sample_snapshot):
        emails = [a.admin_email for a in sample_snapshot.admins_for("Acme Co")]
        assert emails == ["hr@acme.example", "payroll@acme.example"]
        assert sample_snapshot.admins_for("Initech") == []

    def test_partnerships_and_models(self, sample_snapshot):
        assert sample_snapshot.partnerships() == ["OSV", "Summit"]
        assert sample_snapshot.models() == ["Direct", "Reseller"]
        assert [c.name for c in sample_snapshot.companies_in_partnership("osv")] == ["Acme Co", "Globex"]
        assert [c.name for c in sample_snapshot.companies_with_model("reseller")] == [
            "Globex", "Hooli", "Stark Industries",
        ]

    def test_locations(self, sample_snapshot):
        assert sample_snapshot.locations() == ["Austin", "Chicago", "Denver"]
        in_denver = [(e.full_name, e.company) for e in sample_snapshot.employees_in_location("denver")]
        assert in_denver == [("Alex Kim", "Acme Co"), ("Bob Lee", "Stark Industries")]


# ============================================================================
# DERIVED VIEWS
# ============================================================================

class TestDerivedViews:
    """Views computed once per snapshot."""

    def test_outstanding_largest_first(self, sample_snapshot):
        rows = [(e.full_name, e.outstanding_balance) for e in sample_snapshot.employees_with_outstanding_balance()]
        assert rows == [("John Doe", 300.0), ("Jane Smith", 120.5), ("Bob Lee", 80.0), ("Alex Kim", 50.0)]

    def test_outstanding_ties_by_name(self):
        snapshot = DataSnapshot(
            employees=[
                EmployeeRecord(full_name="Zoe Ray", outstanding_balance=10.0),
                EmployeeRecord(full_name="Amy Fox", outstanding_balance=10.0),
            ],
            companies=[],
        )
        assert [e.full_name for e in snapshot.employees_with_outstanding_balance()] == ["Amy Fox", "Zoe Ray"]

    def test_aggregate_stats(self, sample_snapshot):
        stats = sample_snapshot.aggregate_stats
        assert stats.total_employees == 7
        assert stats.paused_employees == 3
        assert stats.active_employees == 4
        assert stats.employees_with_outstanding_balance == 4
        assert stats.total_outstanding_balance == pytest.approx(550.5)
        assert stats.avg_outstanding_balance == pytest.approx(137.625)
        assert stats.total_savings_balance == pytest.approx(825.0)
        assert stats.employees_with_savings_accounts == 3
        assert stats.total_companies == 6
        assert stats.total_eligible == 430
        assert stats.total_adopted == 130
        assert stats.overall_adoption_rate == pytest.approx(130 / 430)
        assert stats.total_transfers == 2300
        assert stats.total_transfer_amount == pytest.approx(265000.0)
        assert stats.companies_missing_counts == 2

    def test_company_employee_stats(self, sample_snapshot):
        stats = sample_snapshot.company_employee_stats("ACME CO")
        assert stats.company_name == "Acme Co"
        assert stats.total_employees == 3
        assert stats.paused_employees == 1
        assert stats.active_employees == 2
        assert stats.employees_with_savings_accounts == 1
        assert stats.total_savings_balance == pytest.approx(250.0)
        assert stats.employees_with_outstanding_balance == 3
        assert stats.total_outstanding_balance == pytest.approx(470.5)

    def test_company_without_employees(self, sample_snapshot):
        assert sample_snapshot.company_employee_stats("Hooli") is None

    def test_derived_is_memoized(self, sample_snapshot):
        factory = MagicMock(return_value={"built": True})
        first = sample_snapshot.derived("index", factory)
        second = sample_snapshot.derived("index", factory)
        assert first is second
        factory.assert_called_once()


class TestSnapshotState:
    """Versioning and emptiness."""

    def test_versions_increase(self):
        first = DataSnapshot(employees=[], companies=[])
        second = DataSnapshot(employees=[], companies=[])
        assert second.version > first.version

    def test_is_empty(self, sample_snapshot):
        assert DataSnapshot(employees=[], companies=[]).is_empty
        assert not sample_snapshot.is_empty
        assert not DataSnapshot(employees=[], companies=[CompanyRecord(name="Solo")]).is_empty


class TestAdoptionRate:
    """adopted / eligible without dividing by zero."""

    @pytest.mark.parametrize("adopted,eligible,expected", [
        (50, 200, 0.25),
        (0, 0, 0.0),
        (None, 50, 0.0),
        (5, None, 0.0),
    ])
    def test_adoption_rate(self, adopted, eligible, expected):
        assert adoption_rate(adopted, eligible) == expected

    def test_active_per_adopted(self, sample_companies):
        acme = sample_companies[0]
        assert acme.active_per_adopted == pytest.approx(0.6)
        assert sample_companies[3].active_per_adopted == 0.0
