#!/usr/bin/env python3
"""Load sample data into the Library API database.

Creates the admin and regular sample accounts, the default categories and a
few books. Existing rows are left untouched, so the script can be re-run.

Usage:
    python scripts/seed_data.py
    python scripts/seed_data.py --create-tables   # without running migrations

Sample accounts:
    admin@library.com / Admin123!  (admin)
    user@library.com  / User123!   (user)
"""

import argparse
import asyncio

from library_api.core import Base, async_session_maker, engine, setup_logging
from library_api.seed import seed_sample_data


async def _run(create_tables: bool) -> dict[str, int]:
    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as db:
        created = await seed_sample_data(db)

    await engine.dispose()
    return created


def main():
    parser = argparse.ArgumentParser(description="Seed the Library API database")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables directly instead of relying on alembic",
    )
    args = parser.parse_args()

    setup_logging(level="INFO", format_type="dev")
    created = asyncio.run(_run(args.create_tables))
    for table, count in created.items():
        print(f"  {table}: {count} created")


if __name__ == "__main__":
    main()
