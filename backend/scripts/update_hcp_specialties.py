"""
Assign every HCP a random specialty from the ophthalmology list.
Run with: python -m scripts.update_hcp_specialties
"""

import asyncio
import random
import sys
from sqlalchemy import select
from kol360.constants import OPHTHALMOLOGY_SPECIALTIES
from kol360.database import engine, async_session
from kol360.models.hcp import Hcp


async def update_specialties(db, rng: random.Random = None) -> int:
    rng = rng or random.Random()
    hcps = (await db.execute(select(Hcp).order_by(Hcp.last_name, Hcp.first_name))).scalars().all()
    print(f"Found {len(hcps)} HCPs to update")

    updated = 0
    for hcp in hcps:
        new_specialty = rng.choice(OPHTHALMOLOGY_SPECIALTIES)
        print(f"Updated {hcp.first_name} {hcp.last_name}: {hcp.specialty or 'null'} -> {new_specialty}")
        hcp.specialty = new_specialty
        updated += 1
    await db.flush()

    print(f"\nDone! Updated {updated} HCPs with random specialties.")
    return updated


async def main():
    print("Updating HCP specialties...")
    async with async_session() as session:
        await update_specialties(session)
        await session.commit()
    await engine.dispose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as e:
        print(f"Update failed: {e}", file=sys.stderr)
        sys.exit(1)
