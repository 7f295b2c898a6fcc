"""
Tests for bulk search collection and the export command line.
"""
import httpx
import pytest

from catalog.__main__ import main, parse_args, parse_attributes
from catalog.core import describe_filters, run_search
from catalog.query import SearchFilters
from conftest import BACKEND_URL, listing_json


@pytest.fixture
def three_pages(backend):
    backend.pages = {
        None: {"listings": [listing_json("a"), listing_json("b")], "total": 5, "nextCursor": "2"},
        "2": {"listings": [listing_json("c"), listing_json("d")], "nextCursor": "3"},
        "3": {"listings": [listing_json("e")]},
    }
    return backend


@pytest.mark.asyncio
async def test_run_search_follows_cursors(three_pages):
    items = await run_search(BACKEND_URL, SearchFilters(), 100, page_size=2, transport=three_pages.transport)
    assert [x.id for x in items] == ["a", "b", "c", "d", "e"]
    assert [r.url.params.get("cursor") for r in three_pages.search_requests()] == [None, "2", "3"]


@pytest.mark.asyncio
async def test_run_search_stops_at_max_items(three_pages):
    items = await run_search(BACKEND_URL, SearchFilters(), 3, page_size=2, transport=three_pages.transport)
    assert [x.id for x in items] == ["a", "b", "c"]
    assert len(three_pages.search_requests()) == 2


@pytest.mark.asyncio
async def test_run_search_returns_empty_on_error(backend):
    backend.search_error = httpx.Response(500, json={"message": "boom"})
    items = await run_search(BACKEND_URL, SearchFilters(), 10, transport=backend.transport)
    assert items == []


def test_describe_filters():
    assert describe_filters(SearchFilters()) is None
    text = describe_filters(SearchFilters(keyword="loft", category_ids=("cat-2",), attributes={"bedrooms": ["2"]}))
    assert text == "q='loft' categories=cat-2 bedrooms=['2']"


def test_parse_attributes(catalog_config):
    attributes = parse_attributes(catalog_config, ["cat-2"], ["bedrooms=2,3", "priceMin=50", "other=x"])
    assert attributes == {"bedrooms": ["2", "3"], "priceMin": 50, "other": "x"}

    with pytest.raises(ValueError):
        parse_attributes(catalog_config, [], ["novalue"])


def test_parse_args_defaults():
    args = parse_args(["--category", "cat-2", "--category", "cat-3", "--sort", "newest"])
    assert args.category == ["cat-2", "cat-3"]
    assert args.sort == "newest"
    assert args.radius_km == 25
    assert args.out == "listings_export.xlsx"


def test_main_rejects_unknown_category(tmp_path):
    out = tmp_path / "out.csv"
    assert main(["--category", "cat-9", "--out", str(out)]) == 2
    assert not out.exists()
