from sqlalchemy import Column, Integer, String, Text, BigInteger, ForeignKey, Index
from sqlalchemy.orm import relationship
from models.base import Base, site_type_column_type


class Site(Base):
    """
    One distribution/information channel record of an item.
    
    Design:
    - One row per source site entry, in source order; duplicates are kept
    - site_title is NULL when the site name is unknown to the catalog
    - url keeps the raw override URL, url_resolved the effective one
    - regions is a comma-joined string or NULL (never empty)
    """
    __tablename__ = "sites"
    
    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    
    site_name = Column(String(64), nullable=False)
    site_title = Column(Text, nullable=True)
    site_type = Column(site_type_column_type(), nullable=False)
    
    site_id = Column(Text, nullable=True)
    url = Column(Text, nullable=True)
    url_template = Column(Text, nullable=True)
    url_resolved = Column(Text, nullable=True)
    
    begin = Column(BigInteger, nullable=True)
    end = Column(BigInteger, nullable=True)
    broadcast = Column(Text, nullable=True)
    broadcast_begin = Column(BigInteger, nullable=True)
    comment = Column(Text, nullable=True)
    regions = Column(Text, nullable=True)
    
    item = relationship("Item", back_populates="sites")
    
    __table_args__ = (
        Index("idx_sites_item", "item_id"),
        Index("idx_sites_name_type", "site_name", "site_type"),
    )


class SiteMeta(Base):
    """
    Static catalog entry, one per known site name.
    
    Replaced wholesale on every run (upsert keyed by site_name).
    """
    __tablename__ = "site_meta"
    
    site_name = Column(String(64), primary_key=True)
    title = Column(Text, nullable=False)
    url_template = Column(Text, nullable=False)
    type = Column(site_type_column_type(), nullable=False)
    regions = Column(Text, nullable=True)
