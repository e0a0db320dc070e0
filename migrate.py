#!/usr/bin/env python3
"""
Database management script.
Creates or drops the schema and seeds lookup data for the configured database.
"""

import asyncio
import argparse
import logging
import sys

from propmatch.config import settings
from propmatch.database import AsyncSessionLocal, create_tables, drop_tables, close_db_connection
from propmatch.seed import seed_lookup_data

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class MigrationManager:
    """Manages schema creation and seeding."""

    async def create_schema(self) -> None:
        logger.info(f"Creating tables on {settings.database_url.split('@')[-1]}")
        await create_tables()

    async def drop_schema(self) -> None:
        logger.warning("Dropping all tables - all data will be lost!")
        await drop_tables()

    async def seed_database(self) -> None:
        """Seed the database with lookup data."""
        logger.info("Seeding database with initial data")
        async with AsyncSessionLocal() as session:
            await seed_lookup_data(session)

    async def reset_database(self) -> None:
        """Reset the database by dropping and recreating all tables."""
        if not (settings.is_development or settings.is_testing):
            raise RuntimeError("Database reset is only allowed in development or test mode")

        await self.drop_schema()
        await self.create_schema()
        await self.seed_database()
        logger.info("Database reset completed")


async def _run(command: str) -> None:
    manager = MigrationManager()
    try:
        if command == "create":
            await manager.create_schema()
            await manager.seed_database()
        elif command == "drop":
            await manager.drop_schema()
        elif command == "seed":
            await manager.seed_database()
        elif command == "reset":
            await manager.reset_database()
    finally:
        await close_db_connection()


def main():
    """Main CLI interface for database management."""
    parser = argparse.ArgumentParser(description="PropMatch database management")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("create", help="Create all tables and seed lookup data")
    subparsers.add_parser("drop", help="Drop all tables")
    subparsers.add_parser("seed", help="Seed lookup data (property types and tags)")

    reset_parser = subparsers.add_parser("reset", help="Drop, recreate and seed (development only)")
    reset_parser.add_argument("--confirm", action="store_true", help="Confirm database reset")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    if args.command == "reset" and not args.confirm:
        print("Database reset requires --confirm flag")
        return

    try:
        asyncio.run(_run(args.command))
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
