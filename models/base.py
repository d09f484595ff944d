from sqlalchemy import Enum
from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class SiteType(str, enum.Enum):
    """Behavioral category of a site, both per record and per catalog entry"""
    ONAIR = "onair"
    INFO = "info"
    RESOURCE = "resource"


def site_type_column_type() -> Enum:
    """Store enum values ("onair"), not member names ("ONAIR")"""
    return Enum(
        SiteType,
        name="site_type",
        native_enum=False,
        length=16,
        values_callable=lambda members: [m.value for m in members],
    )
