"""
Create the bangumi-db schema without loading any data
"""

import argparse
import asyncio
import logging

from core.config import settings
from core.database import create_engine, init_schema
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def init_database(database_url: str):
    logger.info(f"Connecting to {database_url}")
    engine = create_engine(database_url)
    try:
        await init_schema(engine)
        logger.info("Tables created successfully.")
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--database-url", default=settings.DATABASE_URL)
    args = parser.parse_args()
    
    setup_logging()
    asyncio.run(init_database(args.database_url))


if __name__ == "__main__":
    main()
