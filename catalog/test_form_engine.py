"""
Tests for the listing form engine.
"""
import pytest

from catalog.form_engine import (
    KIND_HANDLERS, FormEngine, FormSession, FormValidationError,
    UnknownCategoryError, build_submission, is_empty, is_field_visible,
    render_fields, set_value, validate, visible_fields
)
from catalog.models import FieldDef, FieldKind, Option, ShowWhen

MODE = FieldDef("mode", "Mode", FieldKind.SELECT, required=True,
                options=(Option("a", "A"), Option("b", "B")))
EXTRA = FieldDef("extra", "Extra", FieldKind.TEXT, required=True,
                 show_when=ShowWhen("mode", ("b",)))
TAGS = FieldDef("tags", "Tags", FieldKind.MULTI_SELECT,
                options=(Option("x", "X"), Option("y", "Y")))
SHIPS = FieldDef("ships", "Ships", FieldKind.BOOLEAN)
COUNT = FieldDef("count", "Count", FieldKind.NUMBER)
FIELDS = (
    FieldDef("title", "Title", FieldKind.TEXT, required=True),
    FieldDef("description", "Description", FieldKind.RICH_TEXT),
    MODE, EXTRA, TAGS, SHIPS, COUNT,
)


def test_every_field_kind_has_a_handler():
    assert set(KIND_HANDLERS) == set(FieldKind)


def test_is_empty():
    assert is_empty(None)
    assert is_empty("")
    assert is_empty([])
    assert not is_empty(0)
    assert not is_empty(False)
    assert not is_empty(" ")
    assert not is_empty(["x"])


def test_visibility_uses_strict_equality():
    numeric = FieldDef("n", "N", FieldKind.TEXT, show_when=ShowWhen("k", (1,)))
    flag = FieldDef("f", "F", FieldKind.TEXT, show_when=ShowWhen("k", (True,)))

    assert is_field_visible(numeric, {"k": 1})
    assert is_field_visible(numeric, {"k": 1.0})
    assert not is_field_visible(numeric, {"k": "1"})
    assert not is_field_visible(numeric, {"k": True})
    assert is_field_visible(flag, {"k": True})
    assert not is_field_visible(flag, {"k": "true"})
    assert not is_field_visible(flag, {"k": 1})


def test_visibility_depends_only_on_referenced_value():
    base = {"mode": "b"}
    assert is_field_visible(EXTRA, base)
    assert is_field_visible(EXTRA, {**base, "title": "x", "tags": ["y"], "extra": ""})
    assert not is_field_visible(EXTRA, {})
    assert not is_field_visible(EXTRA, {"mode": "a", "extra": "kept"})
    assert [f.key for f in visible_fields(FIELDS, {"mode": "a"})] == [
        "title", "description", "mode", "tags", "ships", "count"
    ]


def test_validate_skips_hidden_required_fields():
    errors = validate(FIELDS, {"mode": "a"})
    assert errors == {"title": "Title is required."}

    errors = validate(FIELDS, {"mode": "b", "title": "Hi"})
    assert errors == {"extra": "Extra is required."}

    # A select is only satisfied by a stored value, not its display default
    assert "mode" in validate(FIELDS, {"title": "Hi"})


def test_set_value_is_pure():
    values = {"title": "old"}
    updated = set_value(FIELDS, values, "title", "new")
    assert updated == {"title": "new"}
    assert values == {"title": "old"}


def test_multi_select_toggles():
    once = set_value(FIELDS, {}, "tags", "x")
    assert once["tags"] == ["x"]
    twice = set_value(FIELDS, once, "tags", "y")
    assert twice["tags"] == ["x", "y"]
    assert set_value(FIELDS, twice, "tags", "y")["tags"] == ["x"]

    # A whole list replaces the selection
    assert set_value(FIELDS, twice, "tags", ["y"])["tags"] == ["y"]


def test_boolean_is_coerced():
    assert set_value(FIELDS, {}, "ships", "true")["ships"] is True
    assert set_value(FIELDS, {}, "ships", "false")["ships"] is False
    assert set_value(FIELDS, {}, "ships", True)["ships"] is True


def test_unknown_key_is_stored_verbatim():
    assert set_value(FIELDS, {}, "other", 3) == {"other": 3}


def test_render_hints():
    controls = {c.key: c for c in render_fields(FIELDS, {"mode": "b"}, {"extra": "Extra is required."})}

    assert controls["title"].input_type == "textarea"
    assert controls["title"].rows == 2
    assert controls["description"].rows == 5
    assert controls["count"].input_type == "number"
    assert controls["count"].step == 1
    assert controls["ships"].input_type == "switch"
    assert controls["ships"].value is False
    assert controls["tags"].value == []
    assert controls["extra"].error == "Extra is required."
    assert controls["title"].error is None

    unset = {c.key: c for c in render_fields(FIELDS, {})}
    assert unset["mode"].value == "a"
    assert [o["selected"] for o in unset["mode"].options] == [True, False]
    assert not unset["mode"].is_set
    assert controls["mode"].is_set
    assert "extra" not in unset


def test_location_placeholder():
    where = FieldDef("where", "Where", FieldKind.LOCATION)
    custom = FieldDef("there", "There", FieldKind.LOCATION, placeholder="Pickup point")
    controls = render_fields((where, custom), {})
    assert controls[0].placeholder == "City, address, or area"
    assert controls[1].placeholder == "Pickup point"


def test_build_submission():
    values = {
        "title": "Bike", "description": "Fast", "mode": "a", "extra": "hidden now",
        "tags": [], "ships": False, "count": 0,
    }
    payload = build_submission(FIELDS, values, "cat-3", "active")
    assert payload == {
        "title": "Bike",
        "description": "Fast",
        "status": "active",
        "attributes": {"mode": "a", "ships": False, "count": 0},
        "category_id": "cat-3",
    }

    assert "category_id" not in build_submission(FIELDS, values, "")
    with pytest.raises(ValueError):
        build_submission(FIELDS, values, "cat-3", "paused")


def test_form_engine_binds_fields():
    engine = FormEngine(FIELDS)
    values = engine.set_value({}, "mode", "b")
    assert [f.key for f in engine.visible_fields(values)][-4:] == ["extra", "tags", "ships", "count"]
    assert set(engine.validate(values)) == {"title", "extra"}
    assert len(engine.render(values)) == 7


def test_form_session_flow(catalog_config):
    session = FormSession(config=catalog_config)
    assert session.validate() == {"category_id": "Please select a category."}

    with pytest.raises(UnknownCategoryError):
        session.select_category("cat-9")

    session.select_category("cat-3")
    assert "category_id" not in session.errors

    errors = session.validate()
    assert set(errors) == {"title", "description", "condition"}

    # Updating a field clears its error, never adds one
    session.update("title", "Camera")
    assert "title" not in session.errors
    session.update("brand", "")
    assert "brand" not in session.errors

    with pytest.raises(FormValidationError) as exc_info:
        session.submission("draft")
    assert set(exc_info.value.errors) == {"description", "condition"}

    session.update("description", "Works")
    session.update("condition", "good")
    session.update("shipping_available", "true")
    payload = session.submission("draft")
    assert payload["attributes"] == {"condition": "good", "shipping_available": True}
    assert payload["status"] == "draft"


def test_form_session_keeps_values_across_category_change(catalog_config):
    session = FormSession(config=catalog_config, category_id="cat-3")
    session.update("title", "Thing")
    session.select_category("cat-2")
    assert session.values["title"] == "Thing"
    assert session.schema.category_id == "cat-2"


def test_form_session_from_record(catalog_config):
    record = {
        "id": 42,
        "title": "Loft",
        "description": "Sunny",
        "categoryId": "cat-2",
        "attributes": {"bedrooms": 2, "location": "Lisbon"},
    }
    session = FormSession.from_record(catalog_config, record)
    assert session.record_id == "42"
    assert session.category_id == "cat-2"
    assert session.values == {"bedrooms": 2, "location": "Lisbon", "title": "Loft", "description": "Sunny"}
    assert session.validate() == {}
