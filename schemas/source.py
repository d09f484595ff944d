"""
Pydantic schemas for the raw bangumi-data document.

Site records are a tagged union keyed by channel kind. The kind is decided
from the record's shape and name (see ingestion.transformers.classifier), and
each variant makes its optional attributes explicit instead of relying on
presence checks against a loose dict.
"""

from pydantic import BaseModel, Field, validator
import hashlib
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Union
from models.base import SiteType
from ingestion.transformers.classifier import classify_site


class SiteBase(BaseModel):
    """Attributes every site variant may carry"""
    
    site_type: ClassVar[SiteType]
    
    site: str = Field(..., min_length=1)
    id: Optional[str] = None
    url: Optional[str] = None
    end: Optional[str] = None
    broadcast: Optional[str] = None
    comment: Optional[str] = None
    regions: Optional[List[str]] = None
    
    @validator("id", pre=True)
    def coerce_id(cls, v):
        """Numeric ids are used verbatim in URL templates"""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, bool):
            return None
        if isinstance(v, (int, float)):
            return str(v)
        return None
    
    @validator("url", "end", "broadcast", "comment", pre=True)
    def coerce_optional_text(cls, v):
        return v if isinstance(v, str) else None
    
    @validator("regions", pre=True)
    def clean_regions(cls, v):
        """Only a proper sequence counts as regions"""
        if isinstance(v, (list, tuple)):
            return [str(r) for r in v if r is not None]
        return None
    
    class Config:
        extra = "ignore"


class OnairSite(SiteBase):
    """Broadcast-window channel: the only variant with a start date"""
    
    site_type: ClassVar[SiteType] = SiteType.ONAIR
    
    begin: Optional[str]
    
    @validator("begin", pre=True)
    def coerce_begin(cls, v):
        return v if isinstance(v, str) else None


class InfoSite(SiteBase):
    """Information page (database entries, wikis, official profiles)"""
    
    site_type: ClassVar[SiteType] = SiteType.INFO


class ResourceSite(SiteBase):
    """Torrent/resource index; id is usually a search keyword"""
    
    site_type: ClassVar[SiteType] = SiteType.RESOURCE


SourceSite = Union[OnairSite, ResourceSite, InfoSite]

SITE_VARIANTS: Dict[SiteType, type] = {
    SiteType.ONAIR: OnairSite,
    SiteType.INFO: InfoSite,
    SiteType.RESOURCE: ResourceSite,
}


def build_site(raw: Mapping[str, Any]) -> SourceSite:
    """Pick the variant for a raw site record and validate it"""
    return SITE_VARIANTS[classify_site(raw)].parse_obj(dict(raw))


class SourceItem(BaseModel):
    """
    One work as it appears in data.json.
    
    Date fields stay raw strings here; the normalizer turns them into
    timestamps so an unparseable value degrades to NULL instead of failing
    validation.
    """
    
    title: str
    type: str
    lang: str
    official_site: Optional[str] = Field("", alias="officialSite")
    begin: Optional[str] = None
    end: Optional[str] = None
    broadcast: Optional[str] = None
    comment: Optional[str] = None
    title_translate: Dict[str, List[str]] = Field(default_factory=dict, alias="titleTranslate")
    sites: List[SourceSite] = Field(default_factory=list)
    
    @validator("begin", "end", "broadcast", "comment", pre=True)
    def coerce_optional_text(cls, v):
        return v if isinstance(v, str) else None
    
    @validator("title_translate", pre=True)
    def clean_title_translate(cls, v):
        """Keep language order; a bare string counts as a single title"""
        if not isinstance(v, Mapping):
            return {}
        cleaned = {}
        for language, titles in v.items():
            if isinstance(titles, str):
                titles = [titles]
            if not isinstance(titles, (list, tuple)):
                continue
            cleaned[str(language)] = [t for t in titles if isinstance(t, str)]
        return cleaned
    
    @validator("sites", pre=True)
    def build_sites(cls, v):
        if v is None:
            return []
        return [build_site(s) if isinstance(s, Mapping) else s for s in v]
    
    class Config:
        extra = "ignore"
        populate_by_name = True


class SiteMetaEntry(BaseModel):
    """Static catalog entry for one site name"""
    
    title: str
    url_template: str = Field(..., alias="urlTemplate")
    type: str
    regions: Optional[List[str]] = None
    
    @validator("regions", pre=True)
    def clean_regions(cls, v):
        if isinstance(v, (list, tuple)):
            return [str(r) for r in v if r is not None]
        return None
    
    class Config:
        extra = "ignore"
        populate_by_name = True


class Dataset(BaseModel):
    """
    One loaded snapshot of the source package.
    
    raw_bytes is the data file exactly as read, so the checksum identifies
    the snapshot independently of how it was parsed.
    """
    
    name: str
    version: str
    source_location: str
    raw_bytes: bytes = Field(..., repr=False)
    items: List[Dict[str, Any]] = Field(default_factory=list, repr=False)
    site_meta: Dict[str, SiteMetaEntry] = Field(default_factory=dict, repr=False)
    
    @property
    def checksum(self) -> str:
        """SHA-256 hex digest of the data file"""
        return hashlib.sha256(self.raw_bytes).hexdigest()
