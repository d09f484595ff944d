"""
Load normalized records into SQLite (clear-then-reload items, upsert catalog)
"""

from typing import Iterable, List, NamedTuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, func, insert, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from models import Item, TitleTranslation, Site, SiteMeta
from schemas.normalized import ItemBundle, SiteMetaCreate
from core.exceptions import ETLException, DatabaseError, UpsertError
import logging

logger = logging.getLogger(__name__)


class LoadStats(NamedTuple):
    items: int
    title_translations: int
    sites: int


class SQLiteLoader:
    """
    Load data into SQLite.
    
    Ensures:
    - site_meta is replaced per site name on every run (no duplicate rows)
    - items and their children are written in one atomic transaction
    - a failed item load leaves the previous snapshot untouched
    """
    
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
    
    async def load_site_meta(self, entries: List[SiteMetaCreate]) -> int:
        """
        Upsert catalog entries (INSERT ... ON CONFLICT(site_name) DO UPDATE).
        
        Every non-key column is overwritten, so the table always mirrors the
        latest catalog snapshot for the names it contains.
        
        Returns:
            Number of entries written
        """
        if not entries:
            return 0
        
        try:
            stmt = sqlite_insert(SiteMeta).values([entry.dict() for entry in entries])
            stmt = stmt.on_conflict_do_update(
                index_elements=["site_name"],
                set_={
                    "title": stmt.excluded.title,
                    "url_template": stmt.excluded.url_template,
                    "type": stmt.excluded.type,
                    "regions": stmt.excluded.regions,
                }
            )
            await self.db.execute(stmt)
            await self.db.commit()
        
        except Exception as e:
            await self.db.rollback()
            raise UpsertError(
                "Failed to upsert site catalog",
                context={
                    "table_name": SiteMeta.__tablename__,
                    "conflict_fields": ["site_name"],
                    "entries": len(entries)
                },
                original_exception=e
            )
        
        logger.info(f"Upserted {len(entries)} entries into site_meta")
        return len(entries)
    
    async def reset_items(self):
        """Delete all items and their children (no commit)"""
        await self.db.execute(delete(Site))
        await self.db.execute(delete(TitleTranslation))
        await self.db.execute(delete(Item))
    
    async def load_items(self, bundles: Iterable[ItemBundle], reset: bool = True) -> LoadStats:
        """
        Write all item bundles in a single transaction.
        
        Each item is inserted first; its generated id becomes item_id of its
        title and site rows. Any failure (including one raised while the
        bundles iterable is being produced) rolls the whole batch back.
        
        Args:
            bundles: Normalized items, in source order
            reset: Clear items/title_translations/sites before inserting
        
        Returns:
            Counts of rows inserted per table
        
        Raises:
            NormalizationError: re-raised from the bundle producer
            DatabaseError: if an insert or delete fails
        """
        items_loaded = 0
        titles_loaded = 0
        sites_loaded = 0
        
        try:
            if reset:
                await self.reset_items()
                logger.info("Cleared items, title_translations and sites")
            
            for bundle in bundles:
                result = await self.db.execute(
                    insert(Item.__table__).values(**bundle.item.dict())
                )
                item_id = result.inserted_primary_key[0]
                
                if bundle.title_translations:
                    await self.db.execute(
                        insert(TitleTranslation.__table__),
                        [{"item_id": item_id, **t.dict()} for t in bundle.title_translations]
                    )
                
                if bundle.sites:
                    await self.db.execute(
                        insert(Site.__table__),
                        [{"item_id": item_id, **s.dict()} for s in bundle.sites]
                    )
                
                items_loaded += 1
                titles_loaded += len(bundle.title_translations)
                sites_loaded += len(bundle.sites)
            
            await self.db.commit()
        
        except ETLException:
            # Normalization errors from the bundle producer keep their own type
            await self.db.rollback()
            logger.error(f"Item load rolled back after {items_loaded} items")
            raise
        
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Item load rolled back after {items_loaded} items: {str(e)}")
            
            raise DatabaseError(
                "Failed to load items",
                context={
                    "items_before_failure": items_loaded,
                    "operation": "INSERT",
                    "table_name": Item.__tablename__
                },
                original_exception=e
            )
        
        stats = LoadStats(items=items_loaded, title_translations=titles_loaded, sites=sites_loaded)
        logger.info(
            f"Loaded {stats.items} items, {stats.title_translations} title translations, "
            f"{stats.sites} sites"
        )
        return stats
    
    async def count_rows(self, model) -> int:
        """Count persisted rows of a table"""
        result = await self.db.execute(select(func.count()).select_from(model))
        return result.scalar_one()
