#!/usr/bin/env python3
"""Initialize database tables and check the Redis connection."""
import asyncio
import logging

from auctionlive.core.config import settings
from auctionlive.core.database import close_db, init_db
from auctionlive.core.redis import redis_client

logger = logging.getLogger(__name__)


async def main() -> int:
    """Initialize database and test Redis connection."""
    logger.info("Initializing database...")
    try:
        await init_db()
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        return 1
    finally:
        await close_db()

    logger.info("Testing Redis connection...")
    await redis_client.connect()
    try:
        if await redis_client.ping():
            logger.info("Redis connection successful")
        else:
            # The catalog still works without its facet cache
            logger.warning("Redis ping failed")
    finally:
        await redis_client.disconnect()
    return 0


def run() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
