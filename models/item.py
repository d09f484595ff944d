from sqlalchemy import Column, Integer, String, Text, BigInteger, ForeignKey, Index
from sqlalchemy.orm import relationship
from models.base import Base


class Item(Base):
    """
    One cataloged work (anime, movie, real-person show).
    
    Field Mapping Strategy:
    - title -> title
    - type -> type (tv, web, movie, ova; stored verbatim)
    - lang -> lang
    - officialSite -> official_site
    - begin / end -> epoch milliseconds (NULL when empty or unparseable)
    - broadcast -> broadcast (raw R/<start>/<period> string)
    - broadcast start segment -> broadcast_begin (epoch milliseconds)
    - comment -> comment
    
    Exactly one row per source item, inserted in source order.
    """
    __tablename__ = "items"
    
    id = Column(Integer, primary_key=True)
    
    title = Column(Text, nullable=False)
    type = Column(String(16), nullable=False)
    lang = Column(String(16), nullable=False)
    official_site = Column(Text, nullable=True)
    
    begin = Column(BigInteger, nullable=True)
    broadcast = Column(Text, nullable=True)
    broadcast_begin = Column(BigInteger, nullable=True)
    end = Column(BigInteger, nullable=True)
    comment = Column(Text, nullable=True)
    
    # Relationships
    title_translations = relationship("TitleTranslation", back_populates="item")
    sites = relationship("Site", back_populates="item")


class TitleTranslation(Base):
    """One alternate title of an item in one language"""
    __tablename__ = "title_translations"
    
    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    language = Column(String(16), nullable=False)
    title = Column(Text, nullable=False)
    
    item = relationship("Item", back_populates="title_translations")
    
    __table_args__ = (
        Index("idx_title_translations_item", "item_id", "language"),
    )
