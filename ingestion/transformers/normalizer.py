"""
Expand source items into normalized item, title and site records
"""

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional
from pydantic import ValidationError
from schemas.source import SourceItem, SiteBase, SiteMetaEntry
from schemas.normalized import (
    ItemBundle,
    ItemCreate,
    SiteCreate,
    SiteMetaCreate,
    TitleTranslationCreate,
)
from ingestion.transformers.classifier import classify_site
from ingestion.transformers.timestamps import to_timestamp, extract_broadcast_begin
from ingestion.transformers.url_resolver import resolve_url
from core.exceptions import NormalizationError
import logging

logger = logging.getLogger(__name__)


def join_regions(regions: Optional[List[str]]) -> Optional[str]:
    """Comma-join region codes; absent or empty gives None"""
    if not regions:
        return None
    return ",".join(regions)


class RecordNormalizer:
    """
    Normalize bangumi-data items into flat, typed records.
    
    Handles:
    - Schema validation of the raw item
    - Timestamp derivation (begin, end, broadcast start)
    - Site classification and URL resolution
    - Title translation flattening
    
    Every derivation is order-preserving: no site or title is skipped,
    reordered or deduplicated.
    """
    
    def __init__(self, catalog: Mapping[str, SiteMetaEntry]):
        self.catalog = catalog
    
    def normalize(self, raw_item: Mapping[str, Any], index: Optional[int] = None) -> ItemBundle:
        """
        Normalize one raw item.
        
        Returns:
            ItemBundle with the item row and its child rows
        
        Raises:
            NormalizationError: if the item itself fails validation
        """
        try:
            item = SourceItem.parse_obj(raw_item)
        except ValidationError as e:
            raise NormalizationError(
                "Source item failed validation",
                context={
                    "item_index": index,
                    "title": raw_item.get("title") if isinstance(raw_item, Mapping) else None,
                    "field_errors": e.errors(include_url=False),
                },
                original_exception=e
            )
        
        return ItemBundle(
            item=self._normalize_item(item),
            title_translations=self._normalize_titles(item),
            sites=[self._normalize_site(site) for site in item.sites],
        )
    
    def normalize_many(self, raw_items: Iterable[Mapping[str, Any]]) -> Iterator[ItemBundle]:
        """Normalize items lazily, in source order"""
        for index, raw_item in enumerate(raw_items):
            yield self.normalize(raw_item, index=index)
    
    def _normalize_item(self, item: SourceItem) -> ItemCreate:
        return ItemCreate(
            title=item.title,
            type=item.type,
            lang=item.lang,
            official_site=item.official_site,
            begin=to_timestamp(item.begin),
            broadcast=item.broadcast,
            broadcast_begin=extract_broadcast_begin(item.broadcast),
            end=to_timestamp(item.end),
            comment=item.comment,
        )
    
    @staticmethod
    def _normalize_titles(item: SourceItem) -> List[TitleTranslationCreate]:
        return [
            TitleTranslationCreate(language=language, title=title)
            for language, titles in item.title_translate.items()
            for title in titles
        ]
    
    def _normalize_site(self, site: SiteBase) -> SiteCreate:
        resolved = resolve_url(site, self.catalog)
        
        # Only onair variants carry a start date
        begin = getattr(site, "begin", None)
        
        return SiteCreate(
            site_name=site.site,
            site_title=resolved.site_title,
            site_type=classify_site(site),
            site_id=site.id,
            url=site.url,
            url_template=resolved.url_template,
            url_resolved=resolved.url,
            begin=to_timestamp(begin),
            end=to_timestamp(site.end),
            broadcast=site.broadcast,
            broadcast_begin=extract_broadcast_begin(site.broadcast),
            comment=site.comment,
            regions=join_regions(site.regions),
        )


def normalize_site_meta(catalog: Mapping[str, SiteMetaEntry]) -> List[SiteMetaCreate]:
    """Flatten the site catalog into site_meta rows, in catalog order"""
    return [
        SiteMetaCreate(
            site_name=name,
            title=entry.title,
            url_template=entry.url_template,
            type=entry.type,
            regions=join_regions(entry.regions),
        )
        for name, entry in catalog.items()
    ]
