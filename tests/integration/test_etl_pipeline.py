"""
Integration tests for the complete ETL pipeline
"""

import hashlib
import platform
import pytest
from sqlalchemy import select
from ingestion.extractors.local_extractor import LocalDatasetExtractor
from ingestion.runner import ETLRunner
from ingestion.transformers.timestamps import to_timestamp
from models import Item, Meta, Site, SiteMeta, TitleTranslation
from models.base import SiteType


async def meta_values(db_session):
    rows = (await db_session.execute(select(Meta))).scalars().all()
    return {row.key: row.value for row in rows}


@pytest.mark.asyncio
async def test_full_etl_pipeline_integration(db_session, package_dir):
    """
    Integration test: Extract → Catalog → Transform/Load → Provenance → Verify
    """
    runner = ETLRunner(db_session)
    
    result = await runner.run(LocalDatasetExtractor(package_dir))
    
    # Verify result
    assert result["status"] == "success"
    assert result["dataset_version"] == "0.3.150"
    assert result["site_meta_loaded"] == 4
    assert result["items_loaded"] == 3
    assert result["titles_loaded"] == 5
    assert result["sites_loaded"] == 6
    
    # Verify items
    items = (await db_session.execute(select(Item).order_by(Item.id))).scalars().all()
    assert [i.type for i in items] == ["tv", "movie", "web"]
    assert items[0].broadcast_begin == to_timestamp("2021-01-07T14:30:00.000Z")
    assert items[1].begin == to_timestamp("2022-07-01")
    assert items[1].end is None
    
    # Verify sites
    bilibili = (await db_session.execute(
        select(Site).where(Site.site_name == "bilibili")
    )).scalar_one()
    assert bilibili.item_id == items[0].id
    assert bilibili.site_type == SiteType.ONAIR
    assert bilibili.site_title == "哔哩哔哩"
    assert bilibili.url_resolved == "https://www.bilibili.com/bangumi/media/md28234578/"
    assert bilibili.regions == "CN"
    
    unknown = (await db_session.execute(
        select(Site).where(Site.site_name == "unknown_site")
    )).scalar_one()
    assert unknown.site_title is None
    assert unknown.url_template is None
    assert unknown.url_resolved == "https://unknown.example/1"
    
    # Verify provenance
    meta = await meta_values(db_session)
    data_bytes = (package_dir / "dist" / "data.json").read_bytes()
    assert meta["dataset_name"] == "bangumi-data"
    assert meta["dataset_version"] == "0.3.150"
    assert meta["dataset_sha256"] == hashlib.sha256(data_bytes).hexdigest()
    assert meta["dataset_source"] == str(package_dir)
    assert meta["item_count"] == "3"
    assert meta["site_count"] == "6"
    assert meta["title_translation_count"] == "5"
    assert meta["site_meta_count"] == "4"
    assert meta["generator"].startswith("bangumi-db/")
    assert meta["python_version"] == platform.python_version()
    assert meta["sqlite_version"].count(".") >= 1
    assert int(meta["generated_at"]) > 0
    assert meta["generated_at_iso"].endswith("+00:00")


@pytest.mark.asyncio
async def test_single_item_with_two_titles_and_bare_site(db_session, make_package, raw_site_meta):
    """
    One item, two English titles, one site with neither url nor id
    """
    directory, _ = make_package("single", [{
        "title": "Example",
        "titleTranslate": {"en": ["Alt One", "Alt Two"]},
        "type": "web",
        "lang": "en",
        "officialSite": "https://example.com",
        "begin": "",
        "end": "",
        "sites": [{"site": "bangumi"}]
    }], raw_site_meta)
    
    await ETLRunner(db_session).run(LocalDatasetExtractor(directory))
    
    items = (await db_session.execute(select(Item))).scalars().all()
    titles = (await db_session.execute(select(TitleTranslation))).scalars().all()
    sites = (await db_session.execute(select(Site))).scalars().all()
    
    assert len(items) == 1
    assert len(titles) == 2
    assert {t.language for t in titles} == {"en"}
    assert all(t.item_id == items[0].id for t in titles)
    assert len(sites) == 1
    assert sites[0].url_resolved is None


@pytest.mark.asyncio
async def test_rerun_does_not_duplicate(db_session, package_dir):
    """
    Running the ETL twice on an unchanged dataset leaves all row counts unchanged
    """
    runner = ETLRunner(db_session)
    
    await runner.run(LocalDatasetExtractor(package_dir))
    first_meta = await meta_values(db_session)
    
    await runner.run(LocalDatasetExtractor(package_dir))
    second_meta = await meta_values(db_session)
    
    meta_rows = (await db_session.execute(select(Meta))).scalars().all()
    site_meta_rows = (await db_session.execute(select(SiteMeta))).scalars().all()
    items = (await db_session.execute(select(Item))).scalars().all()
    sites = (await db_session.execute(select(Site))).scalars().all()
    titles = (await db_session.execute(select(TitleTranslation))).scalars().all()
    
    assert len(meta_rows) == len(first_meta)
    assert len(site_meta_rows) == 4
    assert len(items) == 3
    assert len(sites) == 6
    assert len(titles) == 5
    assert second_meta["dataset_sha256"] == first_meta["dataset_sha256"]
    assert int(second_meta["generated_at"]) >= int(first_meta["generated_at"])


@pytest.mark.asyncio
async def test_rerun_with_new_snapshot_updates_provenance(db_session, make_package, raw_items, raw_site_meta):
    """
    A newer dataset replaces items and overwrites provenance values in place
    """
    old_dir, _ = make_package("old", raw_items, raw_site_meta, version="0.3.150")
    new_dir, new_bytes = make_package("new", raw_items[:2], raw_site_meta, version="0.3.151")
    runner = ETLRunner(db_session)
    
    await runner.run(LocalDatasetExtractor(old_dir))
    await runner.run(LocalDatasetExtractor(new_dir))
    
    meta = await meta_values(db_session)
    assert meta["dataset_version"] == "0.3.151"
    assert meta["dataset_sha256"] == hashlib.sha256(new_bytes).hexdigest()
    assert meta["item_count"] == "2"
    assert meta["site_count"] == "5"
    
    keys = (await db_session.execute(select(Meta.key))).scalars().all()
    assert len(keys) == len(set(keys))
