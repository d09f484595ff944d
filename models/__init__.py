"""
SQLAlchemy ORM models for database tables.

This package defines the normalized bangumi-data schema using SQLAlchemy ORM models:

Models:
    base: Base declarative class and shared enums (SiteType)
    item: Works and their alternate titles (items, title_translations)
    site: Per-item site records and the static site catalog (sites, site_meta)
    meta: Provenance key/value metadata (meta)

Database Schema:
    All models inherit from the Base declarative class. The schema targets
    SQLite; timestamps are stored as epoch milliseconds in BIGINT columns.

Usage:
    from models import Item, TitleTranslation, Site, SiteMeta, Meta
    from models.base import SiteType

Relationships:
    - Item → TitleTranslation (one-to-many, title_translations.item_id)
    - Item → Site (one-to-many, sites.item_id)
"""

from models.base import Base, SiteType
from models.item import Item, TitleTranslation
from models.site import Site, SiteMeta
from models.meta import Meta

__all__ = [
    "Base",
    "SiteType",
    "Item",
    "TitleTranslation",
    "Site",
    "SiteMeta",
    "Meta",
]
