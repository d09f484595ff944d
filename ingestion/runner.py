# ============================================================================
# File: ingestion/runner.py
# Description: ETL orchestrator for the bangumi-data snapshot load
# ============================================================================
"""
ETL Runner - Orchestrates Extract, Transform, Load, Record.

This module provides the single-pass batch run:
- Extract the dataset snapshot from a DatasetSource
- Replace the site catalog (own transaction)
- Normalize and load all items (one transaction, clear-then-reload)
- Record provenance metadata (own transaction)

A crash between phases can leave a populated catalog or item set with stale
provenance; the meta table is only updated once the items are committed.
"""

from typing import Dict, Any, Optional
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ingestion.base import DatasetSource
from ingestion.transformers.normalizer import RecordNormalizer, normalize_site_meta
from ingestion.loaders.sqlite_loader import SQLiteLoader
from ingestion.provenance import ProvenanceRecorder
from core.config import settings
from core.exceptions import (
    ETLException,
    ExtractionError,
    TransformationError,
    LoadError,
    ProvenanceError,
)

logger = logging.getLogger(__name__)


class ETLRunner:
    """
    ETL Orchestrator

    Responsibilities:
    - Orchestrate Extract → Catalog → Transform/Load → Provenance
    - Keep the item phase atomic
    - Report row counts and timing
    """

    def __init__(self, db_session: AsyncSession, reset: Optional[bool] = None):
        self.db = db_session
        self.reset = settings.RESET_ON_RUN if reset is None else reset

    async def run(self, source: DatasetSource) -> Dict[str, Any]:
        """
        Run the full pipeline for one dataset source.
        
        Args:
            source: Dataset provider (local package or CDN)
        
        Returns:
            Dictionary with run statistics:
            - status: "success"
            - dataset_version: Version of the loaded snapshot
            - dataset_sha256: Checksum of the data file
            - site_meta_loaded / items_loaded / titles_loaded / sites_loaded
            - duration_seconds: Wall time of the run
        
        Raises:
            ExtractionError: If the dataset cannot be fetched
            TransformationError: If the dataset or an item is malformed
            LoadError: If a sink write fails (the item batch is rolled back)
            ProvenanceError: If metadata cannot be recorded
            ETLException: For any other failure
        """
        started_at = datetime.now(timezone.utc)

        try:
            # --------------------------------------------------
            # PHASE 1: EXTRACTION
            # --------------------------------------------------
            logger.info(f"Starting extraction for {source.source_name}")

            try:
                dataset = await source.load()
            except ETLException:
                raise
            except Exception as e:
                raise ExtractionError(
                    "Unexpected error during extraction",
                    context={
                        "source_name": source.source_name,
                        "location": source.location
                    },
                    original_exception=e
                )

            loader = SQLiteLoader(self.db)

            # --------------------------------------------------
            # PHASE 2: SITE CATALOG
            # --------------------------------------------------
            logger.info("Writing site catalog")
            site_meta_loaded = await loader.load_site_meta(
                normalize_site_meta(dataset.site_meta)
            )

            # --------------------------------------------------
            # PHASE 3: NORMALIZE + LOAD ITEMS (ONE TRANSACTION)
            # --------------------------------------------------
            logger.info(f"Importing {len(dataset.items)} items (reset={self.reset})")
            normalizer = RecordNormalizer(dataset.site_meta)
            stats = await loader.load_items(
                normalizer.normalize_many(dataset.items),
                reset=self.reset
            )

            # --------------------------------------------------
            # PHASE 4: PROVENANCE
            # --------------------------------------------------
            logger.info("Recording provenance metadata")
            await ProvenanceRecorder(self.db).record(dataset)

            duration = (datetime.now(timezone.utc) - started_at).total_seconds()
            result = {
                "status": "success",
                "dataset_version": dataset.version,
                "dataset_sha256": dataset.checksum,
                "site_meta_loaded": site_meta_loaded,
                "items_loaded": stats.items,
                "titles_loaded": stats.title_translations,
                "sites_loaded": stats.sites,
                "duration_seconds": duration,
            }

            logger.info(
                f"ETL run completed for {dataset.name}@{dataset.version} in {duration:.1f}s - "
                f"Items: {stats.items}, Titles: {stats.title_translations}, Sites: {stats.sites}"
            )
            return result

        except (ExtractionError, TransformationError, LoadError, ProvenanceError) as e:
            # Known ETL errors - log with context and re-raise
            logger.error(
                f"ETL pipeline failed: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            raise

        except Exception as e:
            logger.exception("Unexpected error in ETL pipeline")
            await self.db.rollback()

            raise ETLException(
                "Unexpected error in ETL pipeline",
                context={"source_name": source.source_name},
                original_exception=e
            )
