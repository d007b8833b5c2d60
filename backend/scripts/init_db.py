"""
Create every KOL360 table that does not exist yet.
Run with: python -m scripts.init_db
"""

import asyncio
import sys
from sqlalchemy import inspect
from kol360.database import engine, Base
import kol360.models  # noqa: F401


async def create_tables() -> list[str]:
    """Create missing tables; returns the names that were newly created."""
    async with engine.begin() as conn:
        existing = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
        await conn.run_sync(Base.metadata.create_all)
    return [name for name in Base.metadata.tables if name not in existing]


async def main():
    created = await create_tables()
    for name in created:
        print(f"  + {name}")
    print(f"{len(created)} tables created, {len(Base.metadata.tables) - len(created)} already present.")
    await engine.dispose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception as e:
        print(f"Database initialisation failed: {e}", file=sys.stderr)
        sys.exit(1)
