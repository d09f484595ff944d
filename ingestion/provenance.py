"""
Record which dataset snapshot produced the database.

Keys written to the meta table:
    dataset_name, dataset_version, dataset_sha256, dataset_source
    generated_at (epoch ms), generated_at_iso
    generator, python_version, sqlite_version
    item_count, site_count, title_translation_count, site_meta_count

Counts come from the persisted tables, not from the in-memory dataset, so a
consumer can compare them against the file it actually opened.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from models import Item, Meta, Site, SiteMeta, TitleTranslation
from schemas.source import Dataset
from ingestion.loaders.sqlite_loader import SQLiteLoader
from ingestion.transformers.timestamps import EPOCH
from core.config import settings
from core.exceptions import ProvenanceError
from importlib import metadata
import platform
import logging

logger = logging.getLogger(__name__)


def generator_version() -> str:
    """Installed bangumi-db version, or "unknown" when running from a source tree"""
    try:
        return metadata.version("bangumi-db")
    except metadata.PackageNotFoundError:
        return "unknown"


class ProvenanceRecorder:
    """Compute provenance metadata and upsert it into meta"""
    
    def __init__(self, db_session: AsyncSession, generator_name: Optional[str] = None):
        self.db = db_session
        self.generator_name = generator_name or settings.GENERATOR_NAME
    
    @property
    def generator(self) -> str:
        return f"{self.generator_name}/{generator_version()}"
    
    async def collect(self, dataset: Dataset) -> Dict[str, str]:
        """Build the metadata key/value set for a loaded dataset"""
        generated_at = datetime.now(timezone.utc)
        loader = SQLiteLoader(self.db)
        
        sqlite_version = await self.db.execute(select(func.sqlite_version()))
        
        return {
            "dataset_name": dataset.name,
            "dataset_version": dataset.version,
            "dataset_sha256": dataset.checksum,
            "dataset_source": dataset.source_location,
            "generated_at": str((generated_at - EPOCH) // timedelta(milliseconds=1)),
            "generated_at_iso": generated_at.isoformat(timespec="milliseconds"),
            "generator": self.generator,
            "python_version": platform.python_version(),
            "sqlite_version": str(sqlite_version.scalar_one()),
            "item_count": str(await loader.count_rows(Item)),
            "site_count": str(await loader.count_rows(Site)),
            "title_translation_count": str(await loader.count_rows(TitleTranslation)),
            "site_meta_count": str(await loader.count_rows(SiteMeta)),
        }
    
    async def record(self, dataset: Dataset) -> Dict[str, str]:
        """
        Upsert provenance keys (INSERT ... ON CONFLICT(key) DO UPDATE).
        
        Returns:
            The key/value pairs written
        
        Raises:
            ProvenanceError: if metadata cannot be computed or written
        """
        try:
            entries = await self.collect(dataset)
            updated_at = int(entries["generated_at"])
            
            stmt = sqlite_insert(Meta).values([
                {"key": key, "value": value, "updated_at": updated_at}
                for key, value in entries.items()
            ])
            stmt = stmt.on_conflict_do_update(
                index_elements=["key"],
                set_={
                    "value": stmt.excluded.value,
                    "updated_at": stmt.excluded.updated_at,
                }
            )
            await self.db.execute(stmt)
            await self.db.commit()
        
        except Exception as e:
            await self.db.rollback()
            raise ProvenanceError(
                "Failed to record provenance metadata",
                context={
                    "dataset_version": dataset.version,
                    "table_name": Meta.__tablename__
                },
                original_exception=e
            )
        
        logger.info(
            f"Recorded provenance for {dataset.name}@{dataset.version}: "
            f"{entries['item_count']} items, {entries['site_count']} sites"
        )
        return entries
