"""
Dataset provider downloading the npm package files from a CDN.

This module provides robust download with:
- Exponential backoff retry logic for transient failures
- Rate limiting protection (honours Retry-After)
- Version pinning: "latest" is resolved once from package.json and the data
  file is fetched for that exact version
- Optional on-disk cache in npm package layout
"""

import httpx
import asyncio
from pathlib import Path
from typing import Optional, Union
from ingestion.base import DatasetSource
from core.config import settings
from core.exceptions import (
    DatasetExtractionError,
    NetworkError,
    RateLimitError,
    ResourceNotFoundError,
)
import logging

logger = logging.getLogger(__name__)


class CDNDatasetExtractor(DatasetSource):
    """
    Download bangumi-data from an npm CDN (jsDelivr, unpkg).
    
    URLs have the form ``<base_url>/<package>@<version>/<path>``.
    
    Attributes:
        max_retries: Maximum number of attempts per file (default: settings.MAX_RETRIES)
        retry_delay: Initial retry delay in seconds (default: settings.RETRY_DELAY)
        timeout: Request timeout in seconds (default: settings.HTTP_TIMEOUT)
        cache_dir: Directory to mirror downloaded files into (optional)
    """
    
    def __init__(
        self,
        package: Optional[str] = None,
        version: Optional[str] = None,
        base_url: Optional[str] = None,
        cache_dir: Optional[Union[str, Path]] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        package = package or settings.DATASET_PACKAGE
        super().__init__(source_name=package)
        self.package = package
        self.version = version or settings.DATASET_VERSION
        self.base_url = (base_url or settings.DATASET_CDN_URL).rstrip("/")
        self.cache_dir = Path(cache_dir) if cache_dir else None
        self.max_retries = max_retries if max_retries is not None else settings.MAX_RETRIES
        self.retry_delay = retry_delay if retry_delay is not None else settings.RETRY_DELAY
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self.transport = transport
        self.resolved_version: Optional[str] = None
        self._descriptor_bytes: Optional[bytes] = None
    
    @property
    def location(self) -> str:
        return f"{self.base_url}/{self.package}@{self.resolved_version or self.version}"
    
    def file_url(self, path: str, version: Optional[str] = None) -> str:
        version = version or self.resolved_version or self.version
        return f"{self.base_url}/{self.package}@{version}/{path}"
    
    async def fetch_descriptor(self):
        descriptor = await super().fetch_descriptor()
        self.resolved_version = descriptor["version"]
        if self.resolved_version != self.version:
            logger.info(f"Resolved {self.package}@{self.version} to {self.resolved_version}")
        return descriptor
    
    async def fetch_descriptor_bytes(self) -> bytes:
        # Always the requested tag; resolved_version is set from its content
        self._descriptor_bytes = await self._download(self.file_url(self.DESCRIPTOR_PATH, self.version))
        return self._descriptor_bytes
    
    async def fetch_data_bytes(self) -> bytes:
        return await self._download(self.file_url(self.DATA_PATH))
    
    async def load(self):
        dataset = await super().load()
        self._write_cache(self.DATA_PATH, dataset.raw_bytes)
        self._write_cache(self.DESCRIPTOR_PATH, self._descriptor_bytes)
        return dataset
    
    def cache_path(self) -> Optional[Path]:
        """Package directory inside cache_dir for the resolved version"""
        if self.cache_dir is None or self.resolved_version is None:
            return None
        return self.cache_dir / f"{self.package}@{self.resolved_version}"
    
    def _write_cache(self, path: str, content: bytes):
        package_dir = self.cache_path()
        if package_dir is None:
            return
        
        target = package_dir / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.debug(f"Cached {path} at {target}")
    
    async def _download(self, url: str) -> bytes:
        """
        Download a file with retry logic and exponential backoff.
        
        Raises:
            ResourceNotFoundError: For HTTP 404 (unknown package or version)
            RateLimitError: When still rate limited after max retries
            NetworkError: For network errors, timeouts or 5xx after max retries
            DatasetExtractionError: For any other HTTP error
        """
        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            follow_redirects=True
        ) as client:
            for attempt in range(self.max_retries):
                delay = self.retry_delay * (2 ** attempt)
                is_last = attempt >= self.max_retries - 1
                
                try:
                    logger.debug(f"Request attempt {attempt + 1}/{self.max_retries} to {url}")
                    response = await client.get(url)
                
                except httpx.TimeoutException as e:
                    if is_last:
                        raise NetworkError(
                            f"Request timeout after {self.max_retries} retries",
                            context={
                                "url": url,
                                "timeout": self.timeout,
                                "retry_count": attempt + 1
                            },
                            original_exception=e
                        )
                    logger.warning(f"Request timeout. Retrying in {delay} seconds")
                    await asyncio.sleep(delay)
                    continue
                
                except httpx.TransportError as e:
                    if is_last:
                        raise NetworkError(
                            f"Network error after {self.max_retries} retries",
                            context={"url": url, "retry_count": attempt + 1},
                            original_exception=e
                        )
                    logger.warning(f"Network error. Retrying in {delay} seconds")
                    await asyncio.sleep(delay)
                    continue
                
                if response.status_code == 404:
                    raise ResourceNotFoundError(
                        f"Resource not found: {url}",
                        context={"status_code": 404, "url": url}
                    )
                
                if response.status_code == 429:
                    retry_after = self._retry_after(response, delay)
                    if is_last:
                        raise RateLimitError(
                            f"Rate limit exceeded for {url}",
                            context={
                                "status_code": 429,
                                "url": url,
                                "retry_count": attempt + 1
                            },
                            retry_after=retry_after
                        )
                    logger.warning(f"Rate limited. Retrying after {retry_after} seconds")
                    await asyncio.sleep(retry_after)
                    continue
                
                if response.status_code >= 500:
                    if is_last:
                        raise NetworkError(
                            f"Server error after {self.max_retries} retries",
                            context={
                                "status_code": response.status_code,
                                "url": url,
                                "retry_count": attempt + 1,
                                "response_body": response.text[:500]  # Truncate
                            }
                        )
                    logger.warning(
                        f"Server error {response.status_code}. "
                        f"Retrying in {delay} seconds (attempt {attempt + 1}/{self.max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue
                
                if response.is_error:
                    raise DatasetExtractionError(
                        f"HTTP {response.status_code} for {url}",
                        context={"status_code": response.status_code, "url": url}
                    )
                
                logger.info(f"Downloaded {url} ({len(response.content)} bytes)")
                return response.content
        
        # Only reachable with max_retries < 1
        raise DatasetExtractionError(
            "Max retries exceeded",
            context={"url": url, "max_retries": self.max_retries}
        )
    
    @staticmethod
    def _retry_after(response: httpx.Response, default: float) -> float:
        try:
            return float(response.headers.get("Retry-After", default))
        except ValueError:
            return default
