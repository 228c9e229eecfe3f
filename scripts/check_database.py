#!/usr/bin/env python3
"""
scripts/check_database.py
Check database connection and ledger schema status
"""

import sys
import asyncio
import logging
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from memer.database.database_service import DatabaseService
from memer.database.ledger import PostgresLedger
from memer.database.queries import ShopQueries, UserQueries
from memer.utils.config import Config

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

LEDGER_TABLES = ("economy_users", "shop_items", "economy_transactions", "economy_notifications")


async def check_database(create_schema: bool = False):
    """Check database connection and status"""
    config = Config()
    database_service = DatabaseService(config)

    print("Meme Economy - Database Health Check")
    print("=" * 50)
    print(f"Host: {config.db_host}")
    print(f"Port: {config.db_port}")
    print(f"Database: {config.db_name}")
    print(f"User: {config.db_user}")
    print()

    try:
        pool = await database_service.initialize()
        print("✅ Database service initialized successfully")

        if create_schema:
            await PostgresLedger(pool).ensure_schema()
            print("✅ Ledger schema ensured")

        async with pool.acquire() as conn:
            version = await conn.fetchval("SELECT version()")
            print(f"✅ PostgreSQL Version: {version.split(',')[0]}")

            tables = await conn.fetch("""
                SELECT table_name
                FROM information_schema.tables
                WHERE table_schema = 'public'
                ORDER BY table_name
            """)
            present = {t["table_name"] for t in tables}
            print(f"✅ Tables found: {len(tables)}")
            for name in LEDGER_TABLES:
                mark = "✅" if name in present else "⚠️"
                print(f"   {mark} {name}")

            try:
                print(f"✅ Users in database: {await UserQueries.count(pool)}")
            except Exception as e:
                print(f"⚠️ Could not check economy_users table: {e}")

            try:
                print(f"✅ Catalog items in database: {await ShopQueries.count(pool)}")
            except Exception as e:
                print(f"⚠️ Could not check shop_items table: {e}")

        print("\n✅ Database health check passed!")
        await database_service.close()
        return True

    except Exception as e:
        print(f"❌ Database health check failed: {e}")
        await database_service.close()
        return False


async def main():
    """Main function"""
    success = await check_database(create_schema="--create-schema" in sys.argv)
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
