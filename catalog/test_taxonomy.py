"""
Tests for category traversal, schema aggregation and catalog loading.
"""
import json
import logging

import pytest

from catalog.models import AttributeDef, AttributeKind, CategoryNode, Option
from catalog.taxonomy import (
    CatalogConfig, CatalogConfigError, aggregate_schema, iter_nodes,
    schema_for_selection, selected_roots
)

RANGE = AttributeDef(kind=AttributeKind.RANGE, min=0, max=10, step=1)
SELECT = AttributeDef(kind=AttributeKind.SELECT, options=(Option("a", "A"),))


def test_aggregate_empty():
    assert aggregate_schema([]) == {}


def test_aggregate_reaches_every_depth():
    grandchild = CategoryNode("g", "G", "g", schema={"deep": RANGE})
    child = CategoryNode("c", "C", "c", children=(grandchild,))
    root = CategoryNode("r", "R", "r", schema={"top": SELECT}, children=(child,))

    schema = aggregate_schema([root])
    assert list(schema) == ["top", "deep"]
    assert schema["deep"] is RANGE


def test_child_definition_overrides_parent():
    """Regression: parent is merged first, the child's definition wins."""
    child = CategoryNode("c", "C", "c", schema={"size": SELECT})
    parent = CategoryNode("p", "P", "p", schema={"size": RANGE}, children=(child,))

    assert aggregate_schema([parent])["size"] is SELECT


def test_later_sibling_overrides_earlier():
    first = CategoryNode("a", "A", "a", schema={"size": RANGE})
    second = CategoryNode("b", "B", "b", schema={"size": SELECT})

    assert aggregate_schema([first, second])["size"] is SELECT
    assert aggregate_schema([second, first])["size"] is RANGE


def test_iter_nodes_preorder_with_depth(catalog_config):
    order = [(node.id, depth) for node, depth in iter_nodes(catalog_config.categories)]
    assert order[:3] == [("cat-1", 0), ("cat-1a", 1), ("cat-1b", 1)]
    assert ("cat-3b", 1) in order
    assert len(order) == 9


def test_schema_for_selection(catalog_config):
    # Nothing selected: the whole forest
    everything = schema_for_selection(catalog_config.categories, [])
    assert set(everything) == {"duration", "location", "priceMin", "priceMax", "bedrooms", "condition"}

    rentals = schema_for_selection(catalog_config.categories, ["cat-2"])
    assert list(rentals) == ["priceMin", "priceMax", "bedrooms"]

    both = catalog_config.schema_for_selection(["cat-3", "cat-2"])
    assert set(both) == {"priceMin", "priceMax", "bedrooms", "condition"}

    # A selected leaf without its own schema contributes nothing
    assert schema_for_selection(catalog_config.categories, ["cat-2a"]) == {}

    # Unknown ids are ignored
    assert schema_for_selection(catalog_config.categories, ["nope"]) == everything


def test_selected_roots_skip_covered_descendants(catalog_config):
    roots = selected_roots(catalog_config.categories, ["cat-2a", "cat-2", "cat-1b"])
    assert [n.id for n in roots] == ["cat-1b", "cat-2"]


def test_load_defaults(catalog_config):
    assert len(catalog_config.category_ids()) == 9
    assert [f.category_id for f in catalog_config.forms] == ["cat-1", "cat-2", "cat-3"]
    assert catalog_config.radius_options_km == (5, 10, 25, 50, 100, 200)
    assert catalog_config.find_category("cat-2b").name == "Vacation"
    assert catalog_config.find_category("missing") is None
    assert catalog_config.form_schema_by_slug("goods").category_id == "cat-3"

    address = catalog_config.form_schema("cat-1").field("location_address")
    assert address.show_when.field_key == "location_type"
    assert address.show_when.allowed_values == ("onsite", "flexible")

    bedrooms = catalog_config.find_category("cat-2").schema["bedrooms"]
    assert bedrooms.kind == AttributeKind.CHECKBOX
    assert [o.value for o in bedrooms.options] == ["1", "2", "3"]


def test_config_errors():
    with pytest.raises(CatalogConfigError):
        CatalogConfig.from_dict({"categories": [{"id": "a"}, {"id": "b", "children": [{"id": "a"}]}]})

    with pytest.raises(CatalogConfigError):
        CatalogConfig.from_dict({"categories": [{"id": "a", "schema": {"x": {"type": "slider"}}}]})

    with pytest.raises(CatalogConfigError):
        CatalogConfig.from_dict({"categories": [{"id": "a", "schema": {"x": {"type": "range", "min": "0"}}}]})

    with pytest.raises(CatalogConfigError):
        CatalogConfig.from_dict({
            "categories": [],
            "forms": [{"categoryId": "a", "fields": [{"key": "t"}, {"key": "t"}]}],
        })

    with pytest.raises(CatalogConfigError):
        CatalogConfig.from_dict({
            "categories": [],
            "forms": [{"categoryId": "a", "fields": [{"key": "t", "type": "color"}]}],
        })


def test_unknown_show_when_target_is_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="catalog.taxonomy"):
        config = CatalogConfig.from_dict({
            "categories": [],
            "forms": [{"categoryId": "a", "fields": [
                {"key": "t", "showWhen": {"field": "ghost", "oneOf": ["x"]}},
            ]}],
        })
    assert config.form_schema("a").field("t").show_when.field_key == "ghost"
    assert "ghost" in caplog.text


def test_from_file(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({
        "categories": [{"id": "x", "name": "X", "slug": "x"}],
        "radiusOptionsKm": [1, 2],
    }))
    config = CatalogConfig.load(str(path))
    assert config.category_ids() == ["x"]
    assert config.radius_options_km == (1, 2)

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(CatalogConfigError):
        CatalogConfig.from_file(str(broken))


@pytest.mark.parametrize("rule", [
    {"oneOf": ["x"]},
    ["t", "x"],
    {"field": "t", "oneOf": "x"},
])
def test_malformed_show_when_is_a_config_error(rule):
    with pytest.raises(CatalogConfigError, match="showWhen needs field/oneOf"):
        CatalogConfig.from_dict({
            "categories": [],
            "forms": [{"categoryId": "a", "fields": [{"key": "t"}, {"key": "u", "showWhen": rule}]}],
        })
