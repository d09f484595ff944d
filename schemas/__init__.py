"""
Pydantic schemas for data validation and serialization.

This package defines Pydantic models for both sides of the pipeline:

Schemas:
    source: The raw bangumi-data document (items, site variants, site catalog)
    normalized: Flat records written to the sink (items, titles, sites, site_meta)

Features:
    - Tagged union of site variants keyed by channel kind
    - Best-effort coercion of optional fields to None
    - Alias handling for camelCase source keys (officialSite, titleTranslate)

Usage:
    from schemas.source import SourceItem, SiteMetaEntry, build_site
    from schemas.normalized import ItemBundle, SiteCreate

Example:
    site = build_site({"site": "bangumi", "id": "302286"})
    assert site.site_type == SiteType.INFO
    
    item = SourceItem.parse_obj({
        "title": "Example",
        "type": "tv",
        "lang": "ja",
        "officialSite": "https://example.com",
        "titleTranslate": {"en": ["Example EN"]},
        "sites": [site]
    })
"""

from schemas.source import (
    SourceItem,
    SourceSite,
    SiteBase,
    OnairSite,
    InfoSite,
    ResourceSite,
    SiteMetaEntry,
    build_site,
    Dataset,
)
from schemas.normalized import (
    ItemCreate,
    TitleTranslationCreate,
    SiteCreate,
    SiteMetaCreate,
    ItemBundle,
)

__all__ = [
    "SourceItem",
    "SourceSite",
    "SiteBase",
    "OnairSite",
    "InfoSite",
    "ResourceSite",
    "SiteMetaEntry",
    "build_site",
    "Dataset",
    "ItemCreate",
    "TitleTranslationCreate",
    "SiteCreate",
    "SiteMetaCreate",
    "ItemBundle",
]
