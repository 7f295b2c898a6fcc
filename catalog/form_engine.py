"""
Listing form engine: conditional visibility, typed value updates, validation
and render hints for a category's field schema.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .models import (
    CategoryFieldSchema, FieldDef, FieldKind, FormValue, FormValueMap,
    ValidationErrors
)
from .taxonomy import CatalogConfig
from .utils import toggle_member

logger = logging.getLogger(__name__)

SUBMIT_STATUSES = ("draft", "active")
CORE_KEYS = ("title", "description")


class UnknownCategoryError(LookupError):
    """Raised when a category id has no listing-form schema."""


class FormValidationError(ValueError):
    """Raised when a form is submitted with field errors."""

    def __init__(self, errors: ValidationErrors):
        super().__init__(f"{len(errors)} field(s) failed validation")
        self.errors = dict(errors)


def is_empty(value: Any) -> bool:
    """Missing, empty string and empty list count as empty; 0 and False do not."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _is_true(value: Any) -> bool:
    return value is True or value == "true"


def _strict_equal(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    return type(a) is type(b) and a == b


# ---------------------------------------------------------------------------
# Per-kind value handling
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class KindHandler:
    """How one field kind stores, displays and renders its value."""
    input_type: str
    update: Callable[[FormValue, Any], FormValue]
    display: Callable[[FieldDef, FormValue], Any]
    rows: Optional[int] = None
    placeholder: Optional[str] = None


def _replace(current: FormValue, incoming: Any) -> FormValue:
    return incoming


def _toggle(current: FormValue, incoming: Any) -> FormValue:
    # A whole list replaces the selection (loading a record); a scalar toggles.
    if isinstance(incoming, (list, tuple)):
        return [str(x) for x in incoming]
    existing = [str(x) for x in current] if isinstance(current, (list, tuple)) else []
    return toggle_member(existing, str(incoming))


def _coerce_bool(current: FormValue, incoming: Any) -> FormValue:
    return _is_true(incoming)


def _text(f: FieldDef, value: FormValue) -> Any:
    return "" if value is None else value


def _select(f: FieldDef, value: FormValue) -> Any:
    if value is not None:
        return value
    return f.options[0].value if f.options else ""


def _multi(f: FieldDef, value: FormValue) -> Any:
    return [str(x) for x in value] if isinstance(value, (list, tuple)) else []


def _checked(f: FieldDef, value: FormValue) -> Any:
    return _is_true(value)


KIND_HANDLERS: Dict[FieldKind, KindHandler] = {
    FieldKind.TEXT: KindHandler("textarea", _replace, _text, rows=2),
    FieldKind.RICH_TEXT: KindHandler("textarea", _replace, _text, rows=5),
    FieldKind.NUMBER: KindHandler("number", _replace, _text),
    FieldKind.SELECT: KindHandler("select", _replace, _select),
    FieldKind.MULTI_SELECT: KindHandler("multi-select", _toggle, _multi),
    FieldKind.DATE: KindHandler("date", _replace, _text),
    FieldKind.LOCATION: KindHandler("text", _replace, _text, placeholder="City, address, or area"),
    FieldKind.BOOLEAN: KindHandler("switch", _coerce_bool, _checked),
}

_missing = [k.value for k in FieldKind if k not in KIND_HANDLERS]
if _missing:
    raise RuntimeError(f"No value handler for field kinds: {_missing}")


# ---------------------------------------------------------------------------
# Pure operations
# ---------------------------------------------------------------------------

def is_field_visible(f: FieldDef, values: FormValueMap) -> bool:
    """
    A field without a showWhen rule is always visible; otherwise it is visible
    iff the referenced value equals one of the allowed values. Equality is
    strict: no coercion between strings, numbers and booleans.
    """
    if f.show_when is None:
        return True
    current = values.get(f.show_when.field_key)
    return any(_strict_equal(allowed, current) for allowed in f.show_when.allowed_values)


def visible_fields(fields: Sequence[FieldDef], values: FormValueMap) -> List[FieldDef]:
    return [f for f in fields if is_field_visible(f, values)]


def set_value(fields: Sequence[FieldDef], values: FormValueMap, key: str, value: Any) -> FormValueMap:
    """Return a new value map with ``key`` updated according to its field kind."""
    target = next((f for f in fields if f.key == key), None)
    updated = dict(values)
    if target is None:
        updated[key] = value
    else:
        updated[key] = KIND_HANDLERS[target.kind].update(values.get(key), value)
    return updated


def validate(fields: Sequence[FieldDef], values: FormValueMap) -> ValidationErrors:
    """
    Required-field check over the visible fields.

    Hidden fields are exempt even when required. Out-of-range numbers are
    accepted; min/max are display hints only.
    """
    errors: ValidationErrors = {}
    for f in visible_fields(fields, values):
        if f.required and is_empty(values.get(f.key)):
            errors[f.key] = f"{f.label} is required."
    return errors


@dataclass
class FieldControl:
    """Everything a template needs to render one form field."""
    key: str
    label: str
    kind: str
    input_type: str
    value: Any
    required: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    rows: Optional[int] = None
    placeholder: Optional[str] = None
    hint: Optional[str] = None
    example: Optional[str] = None
    options: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    # False while the value shown is only a display default
    is_set: bool = True


def render_fields(
    fields: Sequence[FieldDef],
    values: FormValueMap,
    errors: Optional[ValidationErrors] = None
) -> List[FieldControl]:
    errors = errors or {}
    controls = []
    for f in visible_fields(fields, values):
        handler = KIND_HANDLERS[f.kind]
        current = handler.display(f, values.get(f.key))
        if isinstance(current, list):
            chosen = set(current)
        else:
            chosen = {current}
        controls.append(FieldControl(
            key=f.key,
            label=f.label,
            kind=f.kind.value,
            input_type=handler.input_type,
            value=current,
            required=f.required,
            min=f.min,
            max=f.max,
            step=f.step if f.step is not None else (1 if f.kind == FieldKind.NUMBER else None),
            rows=handler.rows,
            placeholder=f.placeholder or handler.placeholder,
            hint=f.hint,
            example=f.example,
            options=[
                {"value": o.value, "label": o.label, "selected": o.value in chosen}
                for o in f.options
            ],
            error=errors.get(f.key) or None,
            is_set=not is_empty(values.get(f.key)),
        ))
    return controls


def build_submission(
    fields: Sequence[FieldDef],
    values: FormValueMap,
    category_id: str,
    status: str = "draft"
) -> Dict[str, Any]:
    """Payload for the listing backend built from the visible, non-empty values."""
    if status not in SUBMIT_STATUSES:
        raise ValueError(f"Unsupported status {status!r}; expected one of {SUBMIT_STATUSES}")
    attributes = {
        f.key: values[f.key]
        for f in visible_fields(fields, values)
        if f.key not in CORE_KEYS and not is_empty(values.get(f.key))
    }
    payload: Dict[str, Any] = {
        "title": str(values.get("title") or ""),
        "description": str(values.get("description") or ""),
        "status": status,
        "attributes": attributes,
    }
    if category_id:
        payload["category_id"] = category_id
    return payload


class FormEngine:
    """Form operations bound to one category's ordered field list."""

    def __init__(self, fields: Sequence[FieldDef]):
        self.fields = tuple(fields)

    def visible_fields(self, values: FormValueMap) -> List[FieldDef]:
        return visible_fields(self.fields, values)

    def set_value(self, values: FormValueMap, key: str, value: Any) -> FormValueMap:
        return set_value(self.fields, values, key, value)

    def validate(self, values: FormValueMap) -> ValidationErrors:
        return validate(self.fields, values)

    def render(self, values: FormValueMap, errors: Optional[ValidationErrors] = None) -> List[FieldControl]:
        return render_fields(self.fields, values, errors)


# ---------------------------------------------------------------------------
# Stateful form for the create/edit listing page
# ---------------------------------------------------------------------------

@dataclass
class FormSession:
    """
    State of one create/edit listing form.

    ``values`` and ``errors`` are replaced, never mutated in place. Errors are
    only computed by ``validate``; ``update`` can clear the error of the field
    it touches but never adds one.
    """
    config: CatalogConfig
    category_id: str = ""
    values: FormValueMap = field(default_factory=dict)
    errors: ValidationErrors = field(default_factory=dict)
    record_id: Optional[str] = None

    @classmethod
    def from_record(cls, config: CatalogConfig, record: Dict[str, Any]) -> "FormSession":
        """Initialize from an existing listing record for editing."""
        values: FormValueMap = dict(record.get("attributes") or {})
        values["title"] = record.get("title") or ""
        values["description"] = record.get("description") or ""
        record_id = record.get("id")
        return cls(
            config=config,
            category_id=record.get("category_id") or record.get("categoryId") or "",
            values=values,
            record_id=str(record_id) if record_id is not None else None,
        )

    @property
    def schema(self) -> Optional[CategoryFieldSchema]:
        if not self.category_id:
            return None
        return self.config.form_schema(self.category_id)

    @property
    def engine(self) -> FormEngine:
        schema = self.schema
        return FormEngine(schema.fields if schema else ())

    def select_category(self, category_id: str) -> None:
        if category_id and self.config.form_schema(category_id) is None:
            raise UnknownCategoryError(category_id)
        self.category_id = category_id
        if "category_id" in self.errors and category_id:
            self.errors = {k: v for k, v in self.errors.items() if k != "category_id"}

    def update(self, key: str, value: Any) -> None:
        self.values = self.engine.set_value(self.values, key, value)
        if key in self.errors and not is_empty(self.values.get(key)):
            self.errors = {k: v for k, v in self.errors.items() if k != key}

    def validate(self) -> ValidationErrors:
        errors: ValidationErrors = {}
        if not self.category_id:
            errors["category_id"] = "Please select a category."
        errors.update(self.engine.validate(self.values))
        self.errors = errors
        return errors

    def visible_fields(self) -> List[FieldDef]:
        return self.engine.visible_fields(self.values)

    def render(self) -> List[FieldControl]:
        return self.engine.render(self.values, self.errors)

    def submission(self, status: str = "draft") -> Dict[str, Any]:
        """Validate, then build the backend payload. Raises FormValidationError."""
        errors = self.validate()
        if errors:
            logger.info(f"Submission blocked by {len(errors)} field error(s): {sorted(errors)}")
            raise FormValidationError(errors)
        return build_submission(self.engine.fields, self.values, self.category_id, status)
