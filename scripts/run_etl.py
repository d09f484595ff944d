"""
Build the bangumi-db SQLite file from the bangumi-data package
"""

import argparse
import asyncio
import sys
import logging

from core.config import settings
from core.database import create_engine, create_session_maker, init_schema
from core.logging import setup_logging
from ingestion.base import DatasetSource
from ingestion.extractors.cdn_extractor import CDNDatasetExtractor
from ingestion.extractors.local_extractor import LocalDatasetExtractor
from ingestion.runner import ETLRunner

logger = logging.getLogger(__name__)


def build_source(package_dir=None, version=None, cache_dir=None) -> DatasetSource:
    """Local package when a directory is given, CDN download otherwise"""
    if package_dir:
        return LocalDatasetExtractor(package_dir, source_name=settings.DATASET_PACKAGE)
    return CDNDatasetExtractor(version=version, cache_dir=cache_dir)


async def run_etl(args: argparse.Namespace) -> int:
    """Run the pipeline once; returns the process exit status"""
    engine = create_engine(args.database_url)
    session_maker = create_session_maker(engine)
    
    try:
        await init_schema(engine)
        
        async with session_maker() as session:
            source = build_source(args.package_dir, args.version, args.cache_dir)
            result = await ETLRunner(session, reset=args.reset).run(source)
        
        logger.info(
            f"Database written to {args.database_url}: "
            f"{result['items_loaded']} items, {result['sites_loaded']} sites "
            f"(bangumi-data {result['dataset_version']})"
        )
        return 0
    
    except Exception as e:
        logger.error(f"ETL pipeline error: {str(e)}")
        return 1
    
    finally:
        await engine.dispose()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--package-dir",
        default=settings.DATASET_PACKAGE_DIR,
        help="Unpacked bangumi-data package (skips download)"
    )
    parser.add_argument(
        "--version",
        default=settings.DATASET_VERSION,
        help="Package version or dist-tag to download"
    )
    parser.add_argument(
        "--cache-dir",
        default=settings.DATASET_CACHE_DIR,
        help="Keep downloaded package files here"
    )
    parser.add_argument("--database-url", default=settings.DATABASE_URL)
    parser.add_argument(
        "--reset",
        action=argparse.BooleanOptionalAction,
        default=settings.RESET_ON_RUN,
        help="Clear items before loading (--no-reset appends instead)"
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging()
    sys.exit(asyncio.run(run_etl(args)))


if __name__ == "__main__":
    main()
