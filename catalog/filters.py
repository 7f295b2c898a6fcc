"""
Search filter controls driven by an aggregated attribute schema.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import AttributeDef, AttributeKind, AttributeSchemaMap, FilterValueMap
from .utils import clean_text, humanize_key, to_number, toggle_member

RANGE_DEFAULT_MIN = 0
RANGE_DEFAULT_MAX = 100
RANGE_DEFAULT_STEP = 1


@dataclass
class FilterControl:
    """A renderable facet control with its current value."""
    key: str
    label: str
    kind: str
    value: Any
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    options: List[Dict[str, Any]] = field(default_factory=list)


def control_value(definition: AttributeDef, values: FilterValueMap, key: str) -> Any:
    """Current value of a control, falling back to the kind's default."""
    raw = values.get(key)
    if definition.kind == AttributeKind.RANGE:
        if raw is None:
            return definition.min if definition.min is not None else RANGE_DEFAULT_MIN
        return raw
    if definition.kind == AttributeKind.SELECT:
        if raw is None:
            return definition.options[0].value if definition.options else ""
        return raw
    if definition.kind == AttributeKind.CHECKBOX:
        return [str(x) for x in raw] if isinstance(raw, (list, tuple)) else []
    raise ValueError(f"Unsupported attribute kind: {definition.kind}")


def render_filters(schema: AttributeSchemaMap, values: FilterValueMap) -> List[FilterControl]:
    """
    Controls for every key of the schema, in schema order.

    Keys present in ``values`` but absent from the schema are not rendered;
    their values stay in the map untouched.
    """
    controls = []
    for key, definition in schema.items():
        current = control_value(definition, values, key)
        control = FilterControl(
            key=key,
            label=humanize_key(key),
            kind=definition.kind.value,
            value=current,
        )
        if definition.kind == AttributeKind.RANGE:
            control.min = definition.min if definition.min is not None else RANGE_DEFAULT_MIN
            control.max = definition.max if definition.max is not None else RANGE_DEFAULT_MAX
            control.step = definition.step if definition.step is not None else RANGE_DEFAULT_STEP
        chosen = set(current) if isinstance(current, list) else {current}
        control.options = [
            {"value": o.value, "label": o.label, "selected": o.value in chosen}
            for o in definition.options
        ]
        controls.append(control)
    return controls


def set_filter_value(values: FilterValueMap, key: str, value: Any) -> FilterValueMap:
    """Pure replace; checkbox toggling is computed by the caller."""
    updated = dict(values)
    updated[key] = value
    return updated


def toggle_checkbox(values: FilterValueMap, key: str, option_value: str) -> List[str]:
    """Next selection of a checkbox facet after toggling one option."""
    raw = values.get(key)
    current = [str(x) for x in raw] if isinstance(raw, (list, tuple)) else []
    return toggle_member(current, str(option_value))


def parse_filter_input(definition: Optional[AttributeDef], raw: Any) -> Any:
    """
    Convert raw form/querystring input into the value type of a facet.

    Unparseable range input becomes '' so that it is left out of the query.
    Without a definition (unknown key) the input passes through unchanged.
    """
    if definition is None:
        return raw
    if definition.kind == AttributeKind.RANGE:
        number = to_number(raw)
        return "" if number is None else number
    if definition.kind == AttributeKind.CHECKBOX:
        if raw is None:
            return []
        items = raw if isinstance(raw, (list, tuple)) else [raw]
        return [str(x) for x in items if str(x) != ""]
    return clean_text(str(raw)) if raw is not None else ""
