"""
Resolve the effective URL of a site record against the site catalog.

Resolution is an ordered chain of strategies. Each strategy either returns a
URL or None to pass to the next one; the chain never raises.

Precedence:
    1. explicit ``url`` on the site record (verbatim)
    2. ``id`` substituted into the catalog's ``{{id}}`` template
    3. unresolved (None)
"""

from typing import Callable, List, Mapping, NamedTuple, Optional
from schemas.source import SiteBase, SiteMetaEntry
import logging

logger = logging.getLogger(__name__)

ID_PLACEHOLDER = "{{id}}"


class ResolvedUrl(NamedTuple):
    url: Optional[str]
    url_template: Optional[str]
    site_title: Optional[str]


ResolutionStrategy = Callable[[SiteBase, SiteMetaEntry], Optional[str]]


def explicit_url(site: SiteBase, meta: SiteMetaEntry) -> Optional[str]:
    return site.url or None


def template_with_id(site: SiteBase, meta: SiteMetaEntry) -> Optional[str]:
    if not site.id or not meta.url_template:
        return None
    if ID_PLACEHOLDER not in meta.url_template:
        logger.debug(f"Template for {site.site} has no {ID_PLACEHOLDER} placeholder")
        return None
    return meta.url_template.replace(ID_PLACEHOLDER, site.id, 1)


RESOLUTION_STRATEGIES: List[ResolutionStrategy] = [
    explicit_url,
    template_with_id,
]


def resolve_url(
    site: SiteBase,
    catalog: Mapping[str, SiteMetaEntry],
    strategies: Optional[List[ResolutionStrategy]] = None
) -> ResolvedUrl:
    """
    Resolve a site's URL.
    
    A site unknown to the catalog falls back to its own raw url with no
    template and no title. A known site always reports the catalog template
    and title, whichever strategy (if any) produced the URL.
    """
    meta = catalog.get(site.site)
    if meta is None:
        return ResolvedUrl(url=site.url or None, url_template=None, site_title=None)
    
    for strategy in strategies or RESOLUTION_STRATEGIES:
        url = strategy(site, meta)
        if url is not None:
            return ResolvedUrl(url=url, url_template=meta.url_template, site_title=meta.title)
    
    return ResolvedUrl(url=None, url_template=meta.url_template, site_title=meta.title)
