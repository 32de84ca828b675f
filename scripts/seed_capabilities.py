"""
Monitoring Capability Seed Script.

Seeds the default Linux capability catalog. Existing rows are updated in
place, keyed on capability_key.

Usage:
    python scripts/seed_capabilities.py
"""

import asyncio

from noblinks.core.config import settings
from noblinks.core.database import close_db, get_db_context
from noblinks.seed import seed_capabilities


async def main():
    """Main seed function."""
    print("=" * 60)
    print("Monitoring Capability Seed Script")
    print("=" * 60)

    dsn = settings.database.dsn
    print(f"\nDatabase: {dsn.split('@')[1] if '@' in dsn else dsn}")

    try:
        async with get_db_context() as session:
            print("\nSeeding monitoring capabilities...")
            keys = await seed_capabilities(session)
            for key in keys:
                print(f"  + {key}")
    finally:
        await close_db()

    print("\n" + "=" * 60)
    print(f"Seed completed successfully! Seeded {len(keys)} capabilities.")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
