"""
Seed reference data: disease areas, specialties, the system user and a platform admin.
Run with: python -m scripts.seed --admin-email admin@example.com --admin-password secret
"""

import argparse
import asyncio
import sys
from kol360.database import engine, async_session, Base
from kol360.services.seed_service import (
    seed_disease_areas, seed_specialties, seed_system_user, seed_settings_row, seed_platform_admin,
)
import kol360.models  # noqa: F401


async def seed(db, admin_email: str = "", admin_password: str = "") -> dict:
    summary = {
        "disease_areas": await seed_disease_areas(db),
        "specialties": await seed_specialties(db),
    }
    await seed_system_user(db)
    await seed_settings_row(db)
    print(f"Created {summary['disease_areas']} disease areas")
    print(f"Created {summary['specialties']} specialties")
    if admin_email and admin_password:
        admin = await seed_platform_admin(db, admin_email, admin_password)
        print(f"Platform admin: {admin.email}")
    return summary


async def main(admin_email: str, admin_password: str):
    print("Seeding database...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_session() as session:
        await seed(session, admin_email, admin_password)
        await session.commit()
    await engine.dispose()
    print("Seeding complete!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed KOL360 reference data")
    parser.add_argument("--admin-email", default="", help="Create a platform admin with this email")
    parser.add_argument("--admin-password", default="", help="Password for the platform admin")
    args = parser.parse_args()
    if bool(args.admin_email) != bool(args.admin_password):
        parser.error("--admin-email and --admin-password must be given together")

    try:
        asyncio.run(main(args.admin_email, args.admin_password))
    except Exception as e:
        print(f"Seeding failed: {e}", file=sys.stderr)
        sys.exit(1)
