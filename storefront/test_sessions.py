"""
Tests for browse sessions and startup configuration.
"""
import pytest

from catalog.models import ResultPage
from catalog.query import SearchFilters
from storefront.config import Config
from storefront.sessions import BrowseSessionStore


async def no_results(params, cursor):
    return ResultPage(items=[], total=0)


def make_store(catalog_config, max_sessions=2):
    return BrowseSessionStore(catalog_config, no_results, SearchFilters(radius_km=40), 24, max_sessions)


def test_store_evicts_least_recently_used(catalog_config):
    store = make_store(catalog_config)
    first = store.create()
    second = store.create()

    # Touching the first session makes the second the oldest
    assert store.get(first.id) is first
    third = store.create()

    assert len(store) == 2
    assert store.get(second.id) is None
    assert store.get(first.id) is first
    assert store.get(third.id) is third


def test_store_drop(catalog_config):
    store = make_store(catalog_config)
    session = store.create()
    assert store.drop(session.id)
    assert not store.drop(session.id)
    assert len(store) == 0


@pytest.mark.asyncio
async def test_session_defaults_and_schema(catalog_config):
    store = make_store(catalog_config)
    session = store.create()
    assert session.filters.radius_km == 40
    assert session.default_filters is store.default_filters
    assert len(session.schema()) == 6

    changed = await session.apply(SearchFilters(radius_km=40, category_ids=("cat-3",)))
    assert changed
    assert list(session.schema()) == ["condition"]
    assert session.controller.is_empty


def test_config_validate(tmp_path):
    settings = Config()
    settings.CATALOG_CONFIG = None
    settings.validate()

    settings.CATALOG_CONFIG = str(tmp_path / "missing.json")
    with pytest.raises(FileNotFoundError):
        settings.validate()

    settings.CATALOG_CONFIG = None
    settings.PAGE_SIZE = 0
    with pytest.raises(ValueError):
        settings.validate()

    settings.PAGE_SIZE = 24
    settings.MARKET_API_URL = ""
    with pytest.raises(ValueError):
        settings.validate()


def test_startup_fails_on_bad_catalog(settings, backend, tmp_path):
    from fastapi.testclient import TestClient
    from storefront.main import create_app

    broken = tmp_path / "catalog.json"
    broken.write_text('{"categories": [{"id": "a"}, {"id": "a"}]}')
    settings.CATALOG_CONFIG = str(broken)

    with pytest.raises(Exception, match="duplicate category ids"):
        with TestClient(create_app(settings, backend.transport)):
            pass
