"""
Unit tests for dataset extractors
"""

import hashlib
import json
import httpx
import pytest
from ingestion.extractors.local_extractor import LocalDatasetExtractor
from ingestion.extractors.cdn_extractor import CDNDatasetExtractor
from core.exceptions import (
    DataFormatError,
    DatasetNotFoundError,
    NetworkError,
    ResourceNotFoundError,
)


class TestLocalDatasetExtractor:
    """Test reading an unpacked package from disk"""
    
    @pytest.mark.asyncio
    async def test_load(self, package_dir, raw_items):
        extractor = LocalDatasetExtractor(package_dir)
        
        dataset = await extractor.load()
        
        data_bytes = (package_dir / "dist" / "data.json").read_bytes()
        assert dataset.name == "bangumi-data"
        assert dataset.version == "0.3.150"
        assert dataset.source_location == str(package_dir)
        assert dataset.checksum == hashlib.sha256(data_bytes).hexdigest()
        assert [item["title"] for item in dataset.items] == [item["title"] for item in raw_items]
        assert set(dataset.site_meta) == {"bangumi", "bilibili", "dmhy", "mikan"}
        assert dataset.site_meta["bilibili"].url_template == "https://www.bilibili.com/bangumi/media/md{{id}}/"
    
    @pytest.mark.asyncio
    async def test_missing_package(self, tmp_path):
        extractor = LocalDatasetExtractor(tmp_path / "nowhere")
        
        with pytest.raises(DatasetNotFoundError):
            await extractor.load()
    
    @pytest.mark.asyncio
    async def test_descriptor_without_version(self, package_dir):
        (package_dir / "package.json").write_text(json.dumps({"name": "bangumi-data"}))
        
        with pytest.raises(DataFormatError):
            await LocalDatasetExtractor(package_dir).load()
    
    @pytest.mark.asyncio
    async def test_invalid_data_json(self, package_dir):
        (package_dir / "dist" / "data.json").write_bytes(b"{not json")
        
        with pytest.raises(DataFormatError):
            await LocalDatasetExtractor(package_dir).load()
    
    @pytest.mark.asyncio
    async def test_data_without_items(self, package_dir):
        (package_dir / "dist" / "data.json").write_text(json.dumps({"siteMeta": {}}))
        
        with pytest.raises(DataFormatError):
            await LocalDatasetExtractor(package_dir).load()
    
    @pytest.mark.asyncio
    async def test_non_object_items_are_ignored(self, make_package, raw_items, raw_site_meta):
        directory, _ = make_package("mixed", raw_items + ["junk", 7], raw_site_meta)
        
        dataset = await LocalDatasetExtractor(directory).load()
        
        assert len(dataset.items) == len(raw_items)


def cdn_handler(raw_items, raw_site_meta, calls, failures=None):
    """Mock CDN serving bangumi-data@latest -> 0.3.150"""
    data = json.dumps({"siteMeta": raw_site_meta, "items": raw_items}).encode("utf-8")
    failures = failures or {}
    
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        calls.append(path)
        
        if failures.get(path):
            failures[path] -= 1
            return httpx.Response(503, text="unavailable")
        if path == "/npm/bangumi-data@latest/package.json":
            return httpx.Response(200, json={"name": "bangumi-data", "version": "0.3.150"})
        if path == "/npm/bangumi-data@0.3.150/dist/data.json":
            return httpx.Response(200, content=data)
        return httpx.Response(404, text="not found")
    
    return handler


class TestCDNDatasetExtractor:
    """Test downloading the package from a CDN"""
    
    def make_extractor(self, handler, **kwargs):
        return CDNDatasetExtractor(
            package="bangumi-data",
            version=kwargs.pop("version", "latest"),
            base_url="https://cdn.example.com/npm",
            retry_delay=0,
            transport=httpx.MockTransport(handler),
            **kwargs
        )
    
    @pytest.mark.asyncio
    async def test_resolves_version_before_fetching_data(self, raw_items, raw_site_meta):
        calls = []
        extractor = self.make_extractor(cdn_handler(raw_items, raw_site_meta, calls))
        
        dataset = await extractor.load()
        
        assert dataset.version == "0.3.150"
        assert extractor.resolved_version == "0.3.150"
        assert dataset.source_location == "https://cdn.example.com/npm/bangumi-data@0.3.150"
        assert calls == [
            "/npm/bangumi-data@latest/package.json",
            "/npm/bangumi-data@0.3.150/dist/data.json",
        ]
        assert len(dataset.items) == len(raw_items)
    
    @pytest.mark.asyncio
    async def test_retries_server_errors(self, raw_items, raw_site_meta):
        calls = []
        data_path = "/npm/bangumi-data@0.3.150/dist/data.json"
        handler = cdn_handler(raw_items, raw_site_meta, calls, failures={data_path: 2})
        extractor = self.make_extractor(handler, max_retries=3)
        
        dataset = await extractor.load()
        
        assert calls.count(data_path) == 3
        assert len(dataset.items) == len(raw_items)
    
    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, raw_items, raw_site_meta):
        calls = []
        data_path = "/npm/bangumi-data@0.3.150/dist/data.json"
        handler = cdn_handler(raw_items, raw_site_meta, calls, failures={data_path: 5})
        extractor = self.make_extractor(handler, max_retries=2)
        
        with pytest.raises(NetworkError) as exc_info:
            await extractor.load()
        
        assert exc_info.value.context["status_code"] == 503
        assert calls.count(data_path) == 2
    
    @pytest.mark.asyncio
    async def test_unknown_version_is_not_retried(self, raw_items, raw_site_meta):
        calls = []
        extractor = self.make_extractor(
            cdn_handler(raw_items, raw_site_meta, calls),
            version="9.9.9"
        )
        
        with pytest.raises(ResourceNotFoundError):
            await extractor.load()
        
        assert calls == ["/npm/bangumi-data@9.9.9/package.json"]
    
    @pytest.mark.asyncio
    async def test_network_errors_are_retried(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)
        
        extractor = self.make_extractor(handler, max_retries=2)
        
        with pytest.raises(NetworkError):
            await extractor.load()
    
    @pytest.mark.asyncio
    async def test_cache_is_readable_by_local_extractor(self, tmp_path, raw_items, raw_site_meta):
        extractor = self.make_extractor(
            cdn_handler(raw_items, raw_site_meta, []),
            cache_dir=tmp_path / "cache"
        )
        
        downloaded = await extractor.load()
        cached = await LocalDatasetExtractor(extractor.cache_path()).load()
        
        assert extractor.cache_path() == tmp_path / "cache" / "bangumi-data@0.3.150"
        assert cached.version == downloaded.version
        assert cached.checksum == downloaded.checksum
