"""
Assign each site record one of the three behavioral categories.
"""

from typing import Any, Mapping
from models.base import SiteType

# Torrent/resource distribution channels
RESOURCE_SITES = frozenset({"dmhy", "mikan", "bangumi_moe"})


def _has_attribute(site: Any, name: str) -> bool:
    if isinstance(site, Mapping):
        return name in site
    return hasattr(site, name)


def _site_name(site: Any) -> Any:
    if isinstance(site, Mapping):
        return site.get("site")
    return getattr(site, "site", None)


def classify_site(site: Any) -> SiteType:
    """
    Classify a raw site mapping or a parsed site model.
    
    Rules, first match wins:
    1. a ``begin`` key is present (even if empty) -> onair
    2. the site name is a known resource index -> resource
    3. anything else -> info
    """
    if _has_attribute(site, "begin"):
        return SiteType.ONAIR
    if _site_name(site) in RESOURCE_SITES:
        return SiteType.RESOURCE
    return SiteType.INFO
