"""
Abstract base class for source dataset providers
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping
from pydantic import ValidationError
from schemas.source import Dataset, SiteMetaEntry
from core.exceptions import DataFormatError
import json
import logging

logger = logging.getLogger(__name__)


class DatasetSource(ABC):
    """
    Abstract base class for all dataset providers.
    
    A provider delivers the two files of the bangumi-data npm package:
    - package.json, the version descriptor
    - dist/data.json, the content file ({"siteMeta": {...}, "items": [...]})
    
    Responsibilities:
    - Fetching the raw bytes (subclasses)
    - Parsing and validating the document into a Dataset (here)
    """
    
    DESCRIPTOR_PATH = "package.json"
    DATA_PATH = "dist/data.json"
    
    def __init__(self, source_name: str):
        self.source_name = source_name
    
    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable location of the package (path or URL)"""
        pass
    
    @abstractmethod
    async def fetch_descriptor_bytes(self) -> bytes:
        """Fetch the raw package.json"""
        pass
    
    @abstractmethod
    async def fetch_data_bytes(self) -> bytes:
        """Fetch the raw data file"""
        pass
    
    async def fetch_descriptor(self) -> Dict[str, Any]:
        """Fetch and parse the package descriptor"""
        descriptor = self._parse_json(await self.fetch_descriptor_bytes(), self.DESCRIPTOR_PATH)
        
        if not isinstance(descriptor, dict) or not isinstance(descriptor.get("version"), str):
            raise DataFormatError(
                "Package descriptor has no version",
                context={"source_name": self.source_name, "location": self.location}
            )
        return descriptor
    
    async def load(self) -> Dataset:
        """
        Load the full dataset snapshot.
        
        Returns:
            Dataset with version, raw bytes, raw items and the parsed catalog
        
        Raises:
            ExtractionError: if either file cannot be fetched
            DataFormatError: if either file is malformed
        """
        descriptor = await self.fetch_descriptor()
        version = descriptor["version"]
        logger.info(f"Loading {self.source_name}@{version} from {self.location}")
        
        raw_bytes = await self.fetch_data_bytes()
        document = self._parse_json(raw_bytes, self.DATA_PATH)
        
        if not isinstance(document, dict) or not isinstance(document.get("items"), list):
            raise DataFormatError(
                "Data file has no items list",
                context={"source_name": self.source_name, "location": self.location}
            )
        
        dataset = Dataset(
            name=descriptor.get("name") or self.source_name,
            version=version,
            source_location=self.location,
            raw_bytes=raw_bytes,
            items=[item for item in document["items"] if isinstance(item, dict)],
            site_meta=self._parse_catalog(document.get("siteMeta") or {}),
        )
        
        skipped = len(document["items"]) - len(dataset.items)
        if skipped:
            logger.warning(f"Ignored {skipped} non-object entries in items")
        
        logger.info(
            f"Loaded {len(dataset.items)} items and {len(dataset.site_meta)} catalog entries "
            f"(sha256 {dataset.checksum[:12]})"
        )
        return dataset
    
    def _parse_catalog(self, raw_catalog: Mapping[str, Any]) -> Dict[str, SiteMetaEntry]:
        if not isinstance(raw_catalog, Mapping):
            raise DataFormatError(
                "siteMeta is not an object",
                context={"source_name": self.source_name, "location": self.location}
            )
        
        try:
            return {
                name: SiteMetaEntry.parse_obj(entry)
                for name, entry in raw_catalog.items()
            }
        except ValidationError as e:
            raise DataFormatError(
                "Malformed siteMeta entry",
                context={
                    "source_name": self.source_name,
                    "location": self.location,
                    "field_errors": e.errors(include_url=False)
                },
                original_exception=e
            )
    
    def _parse_json(self, raw: bytes, what: str) -> Any:
        try:
            return json.loads(raw)
        except (ValueError, UnicodeDecodeError) as e:
            raise DataFormatError(
                f"Invalid JSON in {what}",
                context={"source_name": self.source_name, "location": self.location},
                original_exception=e
            )
