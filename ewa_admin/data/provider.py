"""Data Provider - read-only queries over employees, companies and partnerships.

Providers hand out immutable DataSnapshot objects and cache the most recent
successful load for a TTL. When a reload fails the previous snapshot keeps
being served; only a provider that has never loaded raises DataUnavailable.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from ewa_admin.data.records import (
    AdminRecord,
    AggregateStats,
    CompanyEmployeeStats,
    CompanyRecord,
    EmployeeRecord,
    Suggestions,
)
from ewa_admin.data.snapshot import DataSnapshot

logger = logging.getLogger(__name__)


class DataUnavailable(Exception):
    """The provider could not produce any data (never loaded, or loaded nothing)."""


class DataProvider(ABC):
    """
    Base provider with snapshot caching.

    Subclasses implement ``_load`` and may be backed by files, a database or
    anything else; the query methods below are shared.
    """

    def __init__(self, ttl_seconds: Optional[int] = None):
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds else None
        self._snapshot: Optional[DataSnapshot] = None
        self._loaded_at: Optional[datetime] = None
        self._lock = asyncio.Lock()

    @abstractmethod
    async def _load(self) -> DataSnapshot:
        """Load a fresh snapshot from the backing store."""

    def _is_stale(self) -> bool:
        if self._snapshot is None:
            return True
        if self._loaded_at is None:
            return True
        if self._ttl is None:
            return False
        return datetime.now(timezone.utc) - self._loaded_at > self._ttl

    async def get_snapshot(self) -> DataSnapshot:
        """Return the cached snapshot, reloading it when stale."""
        if not self._is_stale():
            return self._snapshot

        async with self._lock:
            # Another request may have reloaded while we waited
            if not self._is_stale():
                return self._snapshot

            try:
                snapshot = await self._load()
            except DataUnavailable:
                if self._snapshot is None:
                    raise
                logger.warning("Snapshot reload failed; serving the last successful sync")
                self._loaded_at = datetime.now(timezone.utc)
                return self._snapshot

            if snapshot.is_empty:
                if self._snapshot is None:
                    raise DataUnavailable("Data source returned no employees or companies")
                logger.warning("Snapshot reload returned no rows; keeping the last successful sync")
                self._loaded_at = datetime.now(timezone.utc)
                return self._snapshot

            self._snapshot = snapshot
            self._loaded_at = datetime.now(timezone.utc)
            return snapshot

    async def refresh(self) -> None:
        """Mark the cached snapshot stale so the next query reloads it.

        The old snapshot is kept until the reload succeeds.
        """
        async with self._lock:
            self._loaded_at = None

    # ==========================================================================
    # Query interface
    # ==========================================================================

    async def get_all_employees(self) -> Sequence[EmployeeRecord]:
        return (await self.get_snapshot()).employees

    async def get_all_companies(self) -> Sequence[CompanyRecord]:
        return (await self.get_snapshot()).companies

    async def get_admins(self) -> Sequence[AdminRecord]:
        return (await self.get_snapshot()).admins

    async def get_company_employee_stats(self, company_name: str) -> Optional[CompanyEmployeeStats]:
        return (await self.get_snapshot()).company_employee_stats(company_name)

    async def get_employees_with_outstanding_balance(self) -> Sequence[EmployeeRecord]:
        """Employees with a balance, sorted by balance descending."""
        return (await self.get_snapshot()).employees_with_outstanding_balance()

    async def get_aggregate_stats(self) -> AggregateStats:
        return (await self.get_snapshot()).aggregate_stats

    async def get_suggestions(self, term: str) -> Suggestions:
        """Fuzzy did-you-mean names for a search term (bounded)."""
        # Imported here: the resolver depends on the data package, not the reverse
        from ewa_admin.penny.resolver import EntityResolver

        snapshot = await self.get_snapshot()
        return EntityResolver.for_snapshot(snapshot).suggest(term)


class SnapshotDataProvider(DataProvider):
    """
    Provider backed by exported files (JSON document or CSV directory).

    Can also wrap an in-memory DataSnapshot directly, which is how tests and
    the demo seed feed data in.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        snapshot: Optional[DataSnapshot] = None,
        ttl_seconds: Optional[int] = None,
    ):
        super().__init__(ttl_seconds=ttl_seconds if path else None)
        self._path = path
        self._snapshot = snapshot
        if snapshot is not None:
            self._loaded_at = datetime.now(timezone.utc)

    async def _load(self) -> DataSnapshot:
        if self._path is None:
            if self._snapshot is None:
                raise DataUnavailable("No snapshot path configured")
            return self._snapshot

        from ewa_admin.data.loader import load_snapshot_file

        try:
            return await asyncio.to_thread(load_snapshot_file, self._path)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load snapshot from {self._path}: {e}")
            raise DataUnavailable(f"Could not read snapshot at {self._path}") from e


# ============================================================================
# PROVIDER FACTORY
# ============================================================================

_provider: Optional[DataProvider] = None


def get_provider() -> DataProvider:
    """Return the process-wide provider configured by PENNY_DATA_SOURCE."""
    global _provider
    if _provider is None:
        from ewa_admin.config import settings

        if settings.PENNY_DATA_SOURCE == "database":
            from ewa_admin.data.sql_provider import SqlDataProvider
            _provider = SqlDataProvider(ttl_seconds=settings.PENNY_SNAPSHOT_TTL_SECONDS)
        else:
            _provider = SnapshotDataProvider(
                path=settings.PENNY_SNAPSHOT_PATH,
                ttl_seconds=settings.PENNY_SNAPSHOT_TTL_SECONDS,
            )
        logger.info(f"Penny data source: {settings.PENNY_DATA_SOURCE}")
    return _provider


def set_provider(provider: Optional[DataProvider]) -> None:
    """Swap the process-wide provider (tests, demo seeding)."""
    global _provider
    _provider = provider
