from sqlalchemy import Column, String, Text, BigInteger
from models.base import Base


class Meta(Base):
    """
    Provenance key/value store.
    
    Purpose:
    - Records which dataset snapshot produced the database
    - Keys are unique; re-running updates values in place
    """
    __tablename__ = "meta"
    
    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(BigInteger, nullable=False)  # epoch milliseconds
