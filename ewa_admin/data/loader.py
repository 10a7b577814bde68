"""Load a data snapshot from exported files.

Two layouts are accepted:

- a single JSON document ``{"employees": [...], "companies": [...], "admins": [...]}``
- a directory of CSV exports: ``client_summary.csv``, ``employees.csv`` and
  (optionally) ``admins.csv``

Column names are matched case-insensitively and accept the spellings used by
the reporting exports (``FULL_NAME``, ``HAS_SAVINGS_ACCT``, ``Adoption_Rate``...).
"""
import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ewa_admin.data.records import AdminRecord, CompanyRecord, EmployeeRecord
from ewa_admin.data.snapshot import DataSnapshot

logger = logging.getLogger(__name__)

CLIENT_SUMMARY_FILE = "client_summary.csv"
EMPLOYEES_FILE = "employees.csv"
ADMINS_FILE = "admins.csv"

_TRUE_VALUES = {"true", "t", "yes", "y", "1"}


def _normalize_keys(row: Dict[str, Any]) -> Dict[str, Any]:
    return {str(k).strip().lower().replace(" ", "_"): v for k, v in row.items() if k is not None}


def _get(row: Dict[str, Any], *names: str) -> Any:
    for name in names:
        value = row.get(name)
        if value is not None and value != "":
            return value
    return None


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return _text(value).lower() in _TRUE_VALUES


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(float(str(value).replace(",", "")))
    except ValueError:
        logger.warning(f"Ignoring non-numeric count value {value!r}")
        return None


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(str(value).replace(",", "").replace("$", ""))
    except ValueError:
        logger.warning(f"Ignoring non-numeric amount value {value!r}")
        return None


def employee_from_row(raw: Dict[str, Any]) -> Optional[EmployeeRecord]:
    """Build an EmployeeRecord from one export row; rows without a name are skipped."""
    row = _normalize_keys(raw)
    full_name = _text(_get(row, "full_name", "name", "n"))
    if not full_name:
        return None
    return EmployeeRecord(
        full_name=full_name,
        company=_text(_get(row, "company", "company_name", "co")),
        employee_code=_text(_get(row, "employee_code", "employee_id", "eid")),
        paused=_bool(_get(row, "paused", "p")),
        location=_text(_get(row, "location", "loc")),
        paytype=_text(_get(row, "paytype", "salary_or_hourly", "pay_type")),
        has_savings_acct=_bool(_get(row, "has_savings_acct", "has_savings_account")),
        save_balance=_optional_float(_get(row, "save_balance", "sb")) or 0.0,
        outstanding_balance=_optional_float(
            _get(row, "outstanding_balance", "outstanding_principal", "ob")
        ) or 0.0,
        lifetime_total_transfers=_optional_int(_get(row, "lifetime_total_transfers", "ltt")),
        lifetime_volume_usd=_optional_float(_get(row, "lifetime_volume_usd", "lifetime_volume_streamed_usd", "lvs")),
        transfers_30d=_optional_int(_get(row, "transfers_30d", "t30")),
        volume_30d_usd=_optional_float(_get(row, "volume_30d_usd", "v30")),
        transfers_90d=_optional_int(_get(row, "transfers_90d", "t90")),
        volume_90d_usd=_optional_float(_get(row, "volume_90d_usd", "v90")),
    )


def company_from_row(raw: Dict[str, Any]) -> Optional[CompanyRecord]:
    """Build a CompanyRecord from one client summary row."""
    row = _normalize_keys(raw)
    name = _text(_get(row, "company", "name", "company_name"))
    if not name:
        return None
    return CompanyRecord(
        name=name,
        partnership=_optional_text(_get(row, "partnership")),
        model=_optional_text(_get(row, "model")),
        launch_date=_optional_text(_get(row, "launch_date")),
        eligible=_optional_int(_get(row, "eligible")),
        adopted=_optional_int(_get(row, "adopted")),
        active=_optional_int(_get(row, "active")),
        transfers_in_period=_optional_int(_get(row, "transfers_in_period", "transfers")),
        total_transfer_amount=_optional_float(_get(row, "total_transfer_amount", "transfer_amount")),
    )


def admin_from_row(raw: Dict[str, Any]) -> Optional[AdminRecord]:
    row = _normalize_keys(raw)
    company = _text(_get(row, "company", "company_name"))
    email = _text(_get(row, "admin_email", "email"))
    if not company or not email:
        return None
    return AdminRecord(company=company, admin_email=email)


def build_snapshot(
    employee_rows: Iterable[Dict[str, Any]],
    company_rows: Iterable[Dict[str, Any]],
    admin_rows: Iterable[Dict[str, Any]] = (),
) -> DataSnapshot:
    """Parse raw rows into a DataSnapshot, dropping rows with no identity."""
    employees = [e for e in (employee_from_row(r) for r in employee_rows) if e is not None]
    companies = [c for c in (company_from_row(r) for r in company_rows) if c is not None]
    admins = [a for a in (admin_from_row(r) for r in admin_rows) if a is not None]
    return DataSnapshot(employees=employees, companies=companies, admins=admins)


def _read_csv(path: Path) -> List[Dict[str, Any]]:
    with path.open(newline="", encoding="utf-8-sig") as handle:
        return list(csv.DictReader(handle))


def load_snapshot_file(path: str) -> DataSnapshot:
    """
    Load a snapshot from a JSON file or a directory of CSV exports.

    Raises:
        FileNotFoundError: if the path (or a required CSV) does not exist
        ValueError: if the JSON document is malformed
    """
    target = Path(path)
    if target.is_dir():
        employees = _read_csv(target / EMPLOYEES_FILE)
        companies = _read_csv(target / CLIENT_SUMMARY_FILE)
        admins_path = target / ADMINS_FILE
        admins = _read_csv(admins_path) if admins_path.exists() else []
        snapshot = build_snapshot(employees, companies, admins)
    else:
        with target.open(encoding="utf-8") as handle:
            document = json.load(handle)
        if not isinstance(document, dict):
            raise ValueError(f"Snapshot document must be an object, got {type(document).__name__}")
        snapshot = build_snapshot(
            document.get("employees", []),
            document.get("companies", []),
            document.get("admins", []),
        )

    logger.info(
        f"Loaded snapshot from {path}: {len(snapshot.employees)} employees, "
        f"{len(snapshot.companies)} companies, {len(snapshot.admins)} admins"
    )
    return snapshot
