"""Seed the default venue regions.

Usage:
    python -m tablehold.seed
"""

import asyncio
import logging

from tablehold.database import close_db, create_tables, get_db_context
from tablehold.services.region_service import RegionService

logger = logging.getLogger(__name__)


async def seed() -> int:
    await create_tables()
    async with get_db_context() as db:
        created = await RegionService(db).seed_default_regions()
    await close_db()
    return len(created)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    count = asyncio.run(seed())
    logger.info(f"Seeding finished, {count} region(s) created")


if __name__ == "__main__":
    main()
