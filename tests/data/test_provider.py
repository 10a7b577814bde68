"""Tests for the data providers and their snapshot caching."""
import json
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ewa_admin.data import provider as provider_module
from ewa_admin.data.provider import DataUnavailable, SnapshotDataProvider, get_provider, set_provider
from ewa_admin.data.snapshot import DataSnapshot
from ewa_admin.data.sql_provider import SqlDataProvider, load_snapshot_from_db
from ewa_admin.database import Base
from ewa_admin.models import Company, CompanyAdmin, Employee


def _write_snapshot(path, employees):
    path.write_text(json.dumps({
        "employees": [{"FULL_NAME": name, "COMPANY": "Acme Co"} for name in employees],
        "companies": [{"COMPANY": "Acme Co", "ELIGIBLE": 10, "ADOPTED": 2}],
    }))


# ============================================================================
# SNAPSHOT PROVIDER
# ============================================================================

class TestSnapshotDataProvider:
    """File-backed provider with last-good-snapshot fallback."""

    @pytest.mark.asyncio
    async def test_wrapped_snapshot(self, provider, sample_snapshot):
        assert await provider.get_snapshot() is sample_snapshot
        assert len(await provider.get_all_employees()) == 7
        assert len(await provider.get_all_companies()) == 6
        assert len(await provider.get_admins()) == 3

    @pytest.mark.asyncio
    async def test_query_interface(self, provider):
        stats = await provider.get_company_employee_stats("Acme Co")
        assert stats.total_employees == 3
        outstanding = await provider.get_employees_with_outstanding_balance()
        assert outstanding[0].full_name == "John Doe"
        aggregate = await provider.get_aggregate_stats()
        assert aggregate.total_companies == 6

    @pytest.mark.asyncio
    async def test_loads_from_file(self, tmp_path):
        path = tmp_path / "snapshot.json"
        _write_snapshot(path, ["Jane Smith"])
        provider = SnapshotDataProvider(path=str(path))
        snapshot = await provider.get_snapshot()
        assert [e.full_name for e in snapshot.employees] == ["Jane Smith"]
        # Cached until refreshed
        assert await provider.get_snapshot() is snapshot

    @pytest.mark.asyncio
    async def test_refresh_picks_up_changes(self, tmp_path):
        path = tmp_path / "snapshot.json"
        _write_snapshot(path, ["Jane Smith"])
        provider = SnapshotDataProvider(path=str(path))
        await provider.get_snapshot()

        _write_snapshot(path, ["Jane Smith", "John Doe"])
        await provider.refresh()
        assert len((await provider.get_snapshot()).employees) == 2

    @pytest.mark.asyncio
    async def test_missing_path_is_unavailable(self, tmp_path):
        provider = SnapshotDataProvider(path=str(tmp_path / "missing.json"))
        with pytest.raises(DataUnavailable):
            await provider.get_snapshot()

    @pytest.mark.asyncio
    async def test_empty_first_load_is_unavailable(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps({"employees": [], "companies": []}))
        provider = SnapshotDataProvider(path=str(path))
        with pytest.raises(DataUnavailable):
            await provider.get_snapshot()

    @pytest.mark.asyncio
    async def test_failed_reload_keeps_last_snapshot(self, tmp_path):
        path = tmp_path / "snapshot.json"
        _write_snapshot(path, ["Jane Smith"])
        provider = SnapshotDataProvider(path=str(path))
        snapshot = await provider.get_snapshot()

        path.write_text("{broken")
        await provider.refresh()
        assert await provider.get_snapshot() is snapshot

    @pytest.mark.asyncio
    async def test_empty_reload_keeps_last_snapshot(self, tmp_path):
        path = tmp_path / "snapshot.json"
        _write_snapshot(path, ["Jane Smith"])
        provider = SnapshotDataProvider(path=str(path))
        snapshot = await provider.get_snapshot()

        path.write_text(json.dumps({"employees": [], "companies": []}))
        await provider.refresh()
        assert await provider.get_snapshot() is snapshot

    @pytest.mark.asyncio
    async def test_suggestions(self, provider):
        suggestions = await provider.get_suggestions("Jane Smth")
        assert suggestions.employees[0] == "Jane Smith"


class TestProviderFactory:
    """The process-wide provider."""

    def test_set_and_get(self, provider):
        set_provider(provider)
        try:
            assert get_provider() is provider
        finally:
            set_provider(None)

    def test_default_is_file_backed(self):
        set_provider(None)
        try:
            assert isinstance(get_provider(), SnapshotDataProvider)
            assert get_provider() is provider_module._provider
        finally:
            set_provider(None)


# ============================================================================
# SQL PROVIDER
# ============================================================================

@pytest_asyncio.fixture
async def session_factory():
    """In-memory SQLite database holding a small synced workforce."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as db:
        acme = Company(
            name="Acme Co", partnership="OSV", model="Direct", launch_date=date(2023, 1, 15),
            eligible=200, adopted=50, active=30, transfers_in_period=1200, total_transfer_amount=150000,
        )
        acme.admins.append(CompanyAdmin(admin_email="hr@acme.example"))
        db.add_all([
            acme,
            Company(name="Globex", eligible=100, adopted=60),
            Employee(full_name="Jane Smith", company_name="Acme Co", outstanding_balance=120.5, save_balance=250),
            Employee(full_name="John Doe", company_name="Acme Co", paused=True),
        ])
        await db.commit()

    yield factory
    await engine.dispose()


class TestSqlDataProvider:
    """Reading the synced tables into a snapshot."""

    @pytest.mark.asyncio
    async def test_load_snapshot_from_db(self, session_factory):
        async with session_factory() as db:
            snapshot = await load_snapshot_from_db(db)

        assert [c.name for c in snapshot.companies] == ["Acme Co", "Globex"]
        acme = snapshot.company("Acme Co")
        assert acme.launch_date == "2023-01-15"
        assert acme.total_transfer_amount == 150000.0
        assert snapshot.company("Globex").partnership is None
        assert [a.admin_email for a in snapshot.admins_for("Acme Co")] == ["hr@acme.example"]

        jane, john = snapshot.employees
        assert (jane.full_name, jane.outstanding_balance, jane.save_balance) == ("Jane Smith", 120.5, 250.0)
        assert john.paused is True
        assert john.outstanding_balance == 0.0

    @pytest.mark.asyncio
    async def test_provider_uses_session_factory(self, session_factory):
        provider = SqlDataProvider(session_factory=session_factory)
        stats = await provider.get_company_employee_stats("acme co")
        assert stats.total_employees == 2
        assert stats.paused_employees == 1

    @pytest.mark.asyncio
    async def test_database_error_is_unavailable(self, session_factory):
        provider = SqlDataProvider(session_factory=session_factory)
        error = OperationalError("SELECT 1", {}, Exception("database is locked"))
        with patch(
            "ewa_admin.data.sql_provider.load_snapshot_from_db",
            new=AsyncMock(side_effect=error),
        ):
            with pytest.raises(DataUnavailable):
                await provider.get_snapshot()

    @pytest.mark.asyncio
    async def test_database_error_after_load_serves_last_snapshot(self, session_factory):
        provider = SqlDataProvider(session_factory=session_factory)
        snapshot = await provider.get_snapshot()
        assert isinstance(snapshot, DataSnapshot)

        await provider.refresh()
        error = OperationalError("SELECT 1", {}, Exception("connection lost"))
        with patch(
            "ewa_admin.data.sql_provider.load_snapshot_from_db",
            new=AsyncMock(side_effect=error),
        ):
            assert await provider.get_snapshot() is snapshot
