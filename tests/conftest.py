"""
Pytest configuration and fixtures
"""

import copy
import json
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession
from typing import AsyncGenerator
from core.database import create_engine, create_session_maker
from models import Base
from schemas.source import SiteMetaEntry


SITE_META = {
    "bangumi": {
        "title": "番组计划",
        "urlTemplate": "https://bangumi.tv/subject/{{id}}",
        "type": "info"
    },
    "bilibili": {
        "title": "哔哩哔哩",
        "urlTemplate": "https://www.bilibili.com/bangumi/media/md{{id}}/",
        "regions": ["CN"],
        "type": "onair"
    },
    "dmhy": {
        "title": "动漫花园",
        "urlTemplate": "https://share.dmhy.org/topics/list?keyword={{id}}",
        "type": "resource"
    },
    "mikan": {
        "title": "蜜柑计划",
        "urlTemplate": "https://mikanani.me/Home/Bangumi/{{id}}",
        "type": "resource"
    },
}

ITEMS = [
    {
        "title": "ゆるキャン△ SEASON2",
        "titleTranslate": {
            "en": ["Laid-Back Camp Season 2", "Yuru Camp Season 2"],
            "zh-Hans": ["摇曳露营△ 第二季"]
        },
        "type": "tv",
        "lang": "ja",
        "officialSite": "https://yurucamp.jp/second/",
        "begin": "2021-01-07T14:30:00.000Z",
        "broadcast": "R/2021-01-07T14:30:00.000Z/P7D",
        "end": "2021-04-01T15:00:00.000Z",
        "comment": "",
        "sites": [
            {"site": "bangumi", "id": "302286"},
            {
                "site": "bilibili",
                "id": "28234578",
                "begin": "2021-01-07T15:00:00.000Z",
                "broadcast": "R/2021-01-07T15:00:00.000Z/P7D",
                "end": "",
                "regions": ["CN"]
            },
            {"site": "dmhy", "id": "摇曳露营"}
        ]
    },
    {
        "title": "劇場版 サンプル",
        "titleTranslate": {},
        "type": "movie",
        "lang": "ja",
        "officialSite": "",
        "begin": "2022-07-01",
        "end": "",
        "sites": [
            {"site": "unknown_site", "url": "https://unknown.example/1"},
            {"site": "mikan"}
        ]
    },
    {
        "title": "Example",
        "titleTranslate": {"en": ["Alt One", "Alt Two"]},
        "type": "web",
        "lang": "en",
        "officialSite": "https://example.com",
        "begin": "",
        "end": "",
        "sites": [
            {"site": "bangumi"}
        ]
    },
]


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a file-backed SQLite engine with all tables"""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    yield engine
    
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with create_session_maker(test_engine)() as session:
        yield session
        await session.rollback()


@pytest.fixture
def raw_site_meta():
    """Raw siteMeta catalog as found in data.json"""
    return copy.deepcopy(SITE_META)


@pytest.fixture
def catalog(raw_site_meta):
    """Parsed site catalog"""
    return {name: SiteMetaEntry.parse_obj(entry) for name, entry in raw_site_meta.items()}


@pytest.fixture
def raw_items():
    """Raw items as found in data.json"""
    return copy.deepcopy(ITEMS)


def write_package(package_dir, items, site_meta, version="0.3.150"):
    """Write a bangumi-data package layout; returns the data file bytes"""
    (package_dir / "dist").mkdir(parents=True, exist_ok=True)
    (package_dir / "package.json").write_text(
        json.dumps({"name": "bangumi-data", "version": version}),
        encoding="utf-8"
    )
    data = json.dumps({"siteMeta": site_meta, "items": items}, ensure_ascii=False).encode("utf-8")
    (package_dir / "dist" / "data.json").write_bytes(data)
    return data


@pytest.fixture
def package_dir(tmp_path, raw_items, raw_site_meta):
    """Unpacked bangumi-data package with the sample items"""
    directory = tmp_path / "bangumi-data"
    write_package(directory, raw_items, raw_site_meta)
    return directory


@pytest.fixture
def make_package(tmp_path):
    """Factory writing a package under tmp_path/<name>; returns (dir, data bytes)"""
    def _make(name, items, site_meta, version="0.3.150"):
        directory = tmp_path / name
        return directory, write_package(directory, items, site_meta, version)
    return _make
