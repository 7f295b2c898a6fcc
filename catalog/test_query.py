"""
Tests for search filter state and query parameter composition.
"""
import pytest

from catalog.query import (
    DEFAULT_FILTERS, SearchFilters, Sort, View, build_params, clear_filters,
    filters_key, set_attribute, to_query_pairs, toggle_attribute_option,
    toggle_category, update_filters
)


def test_default_params():
    assert build_params(DEFAULT_FILTERS) == {"radiusKm": 25, "sort": "relevance", "limit": 24}
    assert DEFAULT_FILTERS.view == View.GRID
    assert DEFAULT_FILTERS.category_ids == ()


def test_build_params_order_and_contents():
    filters = SearchFilters(
        keyword="bike",
        location="Porto",
        radius_km=10,
        category_ids=("cat-2", "cat-3"),
        sort=Sort.PRICE_ASC,
        attributes={"bedrooms": ["2", "3"], "priceMin": 50, "empty": "", "none": None},
        lat=41.1,
        lng=-8.6,
    )
    params = build_params(filters, limit=12)
    assert list(params) == [
        "q", "location", "radiusKm", "sort", "limit", "categoryIds", "categoryId",
        "lat", "lng", "bedrooms", "priceMin",
    ]
    assert params["categoryIds"] == ["cat-2", "cat-3"]
    assert params["categoryId"] == "cat-2"
    assert params["sort"] == "price_asc"
    assert params["limit"] == 12


def test_keyword_sent_as_typed():
    assert build_params(SearchFilters(keyword="  two  words "))["q"] == "  two  words "
    assert "q" not in build_params(SearchFilters(keyword=""))


def test_lat_lng_need_both():
    assert "lat" not in build_params(SearchFilters(lat=1.0))
    assert build_params(SearchFilters(lat=0.0, lng=0.0))["lat"] == 0.0


def test_attributes_override_reserved_keys():
    params = build_params(SearchFilters(location="Porto", attributes={"location": "onsite"}))
    assert params["location"] == "onsite"


def test_view_never_sent():
    grid = SearchFilters()
    mapped = update_filters(grid, view="map")
    assert "view" not in build_params(mapped)
    assert filters_key(grid) == filters_key(mapped)


def test_query_pairs_repeat_lists():
    params = {"radiusKm": 25.0, "categoryIds": ["a", "b"], "bedrooms": [], "flag": True}
    assert to_query_pairs(params, cursor="2") == [
        ("radiusKm", "25"), ("categoryIds", "a"), ("categoryIds", "b"),
        ("flag", "true"), ("cursor", "2"),
    ]
    assert ("cursor", "2") not in to_query_pairs(params)


def test_filters_key_tracks_params():
    base = SearchFilters()
    assert filters_key(base) == filters_key(SearchFilters())
    assert filters_key(base) != filters_key(update_filters(base, sort="newest"))
    assert filters_key(base) != filters_key(set_attribute(base, "bedrooms", ["2"]))
    assert filters_key(base, 24) != filters_key(base, 12)
    # '' attributes are not sent, so they do not change the key
    assert filters_key(base) == filters_key(set_attribute(base, "priceMin", ""))
    hash(filters_key(set_attribute(base, "bedrooms", ["2"])))


def test_update_helpers_are_pure():
    base = SearchFilters()
    updated = update_filters(base, sort="price_desc", category_ids=["x"], radius_km=50)
    assert updated.sort is Sort.PRICE_DESC
    assert updated.category_ids == ("x",)
    assert base.sort is Sort.RELEVANCE

    with pytest.raises(ValueError):
        update_filters(base, sort="cheapest")

    toggled = toggle_category(base, "cat-1")
    assert toggled.category_ids == ("cat-1",)
    assert toggle_category(toggled, "cat-1").category_ids == ()

    with_beds = toggle_attribute_option(base, "bedrooms", "2")
    assert with_beds.attributes == {"bedrooms": ["2"]}
    assert base.attributes == {}
    assert toggle_attribute_option(with_beds, "bedrooms", "2").attributes == {"bedrooms": []}


def test_clear_filters():
    custom_default = SearchFilters(radius_km=40)
    busy = SearchFilters(keyword="x", category_ids=("cat-1",), attributes={"a": 1}, view=View.LIST)
    assert clear_filters() == DEFAULT_FILTERS
    assert clear_filters(custom_default) == custom_default
    assert busy != clear_filters()
