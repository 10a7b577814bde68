"""Development utilities for seeding data and trying Penny from the shell."""
import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import delete

from ewa_admin.config import settings
from ewa_admin.data.loader import load_snapshot_file
from ewa_admin.data.provider import SnapshotDataProvider
from ewa_admin.database import AsyncSessionLocal, init_db
from ewa_admin.models import Company, CompanyAdmin, Employee
from ewa_admin.penny import orchestrator
from ewa_admin.penny.schemas import ChatRequest


def _date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _decimal(value: Optional[float]) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


async def seed_database(path: str = settings.PENNY_SNAPSHOT_PATH):
    """
    Copy a snapshot file into the database tables.

    Use this to try PENNY_DATA_SOURCE=database against realistic rows.
    """
    snapshot = load_snapshot_file(path)
    await init_db()

    async with AsyncSessionLocal() as db:
        companies = {}
        for record in snapshot.companies:
            company = Company(
                name=record.name,
                partnership=record.partnership,
                model=record.model,
                launch_date=_date(record.launch_date),
                eligible=record.eligible,
                adopted=record.adopted,
                active=record.active,
                transfers_in_period=record.transfers_in_period,
                total_transfer_amount=_decimal(record.total_transfer_amount),
            )
            db.add(company)
            companies[record.name] = company

        for admin in snapshot.admins:
            company = companies.get(admin.company)
            if company is not None:
                company.admins.append(CompanyAdmin(admin_email=admin.admin_email))

        for record in snapshot.employees:
            db.add(Employee(
                full_name=record.full_name,
                employee_code=record.employee_code or None,
                company_name=record.company or None,
                location=record.location or None,
                paytype=record.paytype or None,
                paused=record.paused,
                has_savings_acct=record.has_savings_acct,
                save_balance=_decimal(record.save_balance),
                outstanding_balance=_decimal(record.outstanding_balance),
                lifetime_total_transfers=record.lifetime_total_transfers,
                lifetime_volume_usd=_decimal(record.lifetime_volume_usd),
                transfers_30d=record.transfers_30d,
                volume_30d_usd=_decimal(record.volume_30d_usd),
                transfers_90d=record.transfers_90d,
                volume_90d_usd=_decimal(record.volume_90d_usd),
            ))

        await db.commit()

    print(f"✅ Seeded {len(snapshot.companies)} companies, {len(snapshot.employees)} employees, "
          f"{len(snapshot.admins)} admins")


async def ask(question: str, path: str = settings.PENNY_SNAPSHOT_PATH):
    """Ask Penny one question against a snapshot file and print the answer."""
    provider = SnapshotDataProvider(path=path)
    response = await orchestrator.chat(ChatRequest(message=question), provider=provider)

    print(response.text)
    if response.suggestions:
        print("\nTry next:")
        for suggestion in response.suggestions:
            print(f"  - {suggestion}")


async def clear_all_data():
    """Clear all data from database (use with caution!)."""
    async with AsyncSessionLocal() as db:
        await db.execute(delete(CompanyAdmin))
        await db.execute(delete(Employee))
        await db.execute(delete(Company))
        await db.commit()
        print("✅ Cleared all data from database")


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 2:
        print("Usage:")
        print("  python dev_utils.py seed_database [snapshot.json]")
        print("  python dev_utils.py ask \"<question>\" [snapshot.json]")
        print("  python dev_utils.py clear_all")
        sys.exit(1)

    command = sys.argv[1]

    if command == "seed_database":
        path = sys.argv[2] if len(sys.argv) > 2 else settings.PENNY_SNAPSHOT_PATH
        asyncio.run(seed_database(path))

    elif command == "ask":
        if len(sys.argv) < 3:
            print("❌ Please provide a question")
            sys.exit(1)
        path = sys.argv[3] if len(sys.argv) > 3 else settings.PENNY_SNAPSHOT_PATH
        asyncio.run(ask(sys.argv[2], path))

    elif command == "clear_all":
        confirm = input("⚠️  Are you sure? This will delete ALL data. Type 'yes' to confirm: ")
        if confirm.lower() == "yes":
            asyncio.run(clear_all_data())
        else:
            print("❌ Cancelled")

    else:
        print(f"❌ Unknown command: {command}")
