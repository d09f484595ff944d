"""
Dataset provider reading an unpacked npm package from disk
"""

from pathlib import Path
from typing import Union
from ingestion.base import DatasetSource
from core.exceptions import DatasetNotFoundError
import logging

logger = logging.getLogger(__name__)


class LocalDatasetExtractor(DatasetSource):
    """
    Read bangumi-data from a package directory.
    
    Works with node_modules/bangumi-data, an extracted npm tarball, or a
    directory written by CDNDatasetExtractor's cache.
    """
    
    def __init__(self, package_dir: Union[str, Path], source_name: str = "bangumi-data"):
        super().__init__(source_name=source_name)
        self.package_dir = Path(package_dir)
    
    @property
    def location(self) -> str:
        return str(self.package_dir)
    
    async def fetch_descriptor_bytes(self) -> bytes:
        return self._read(self.package_dir / self.DESCRIPTOR_PATH)
    
    async def fetch_data_bytes(self) -> bytes:
        return self._read(self.package_dir / self.DATA_PATH)
    
    def _read(self, file_path: Path) -> bytes:
        if not file_path.is_file():
            raise DatasetNotFoundError(
                f"Dataset file not found: {file_path}",
                context={"source_name": self.source_name, "file_path": str(file_path)}
            )
        
        logger.debug(f"Reading {file_path}")
        try:
            return file_path.read_bytes()
        except OSError as e:
            raise DatasetNotFoundError(
                f"Dataset file unreadable: {file_path}",
                context={"source_name": self.source_name, "file_path": str(file_path)},
                original_exception=e
            )
