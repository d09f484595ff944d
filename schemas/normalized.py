"""
Pydantic schemas for normalized records, one per sink table row
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List
from models.base import SiteType


class ItemCreate(BaseModel):
    """Row for the items table (id is assigned by the sink)"""
    
    title: str
    type: str
    lang: str
    official_site: Optional[str] = None
    begin: Optional[int] = None
    broadcast: Optional[str] = None
    broadcast_begin: Optional[int] = None
    end: Optional[int] = None
    comment: Optional[str] = None


class TitleTranslationCreate(BaseModel):
    """Row for title_translations, minus the owning item id"""
    
    language: str
    title: str


class SiteCreate(BaseModel):
    """
    Row for the sites table, minus the owning item id.
    
    Ensures:
    - site_type is one of onair / info / resource
    - regions is either a non-empty comma-joined string or None
    """
    
    site_name: str = Field(..., min_length=1)
    site_title: Optional[str] = None
    site_type: SiteType
    site_id: Optional[str] = None
    url: Optional[str] = None
    url_template: Optional[str] = None
    url_resolved: Optional[str] = None
    begin: Optional[int] = None
    end: Optional[int] = None
    broadcast: Optional[str] = None
    broadcast_begin: Optional[int] = None
    comment: Optional[str] = None
    regions: Optional[str] = None
    
    @validator("regions")
    def empty_regions_to_none(cls, v):
        return v or None
    
    class Config:
        use_enum_values = True


class SiteMetaCreate(BaseModel):
    """Row for the site_meta catalog table"""
    
    site_name: str = Field(..., min_length=1)
    title: str
    url_template: str
    type: str
    regions: Optional[str] = None
    
    @validator("regions")
    def empty_regions_to_none(cls, v):
        return v or None


class ItemBundle(BaseModel):
    """One source item expanded into its item row and child rows"""
    
    item: ItemCreate
    title_translations: List[TitleTranslationCreate] = Field(default_factory=list)
    sites: List[SiteCreate] = Field(default_factory=list)
