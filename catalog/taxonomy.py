"""
Category taxonomy: configuration loading, tree traversal and schema aggregation.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .defaults import DEFAULT_CATALOG
from .models import (
    AttributeDef, AttributeKind, AttributeSchemaMap, CategoryFieldSchema,
    CategoryNode, FieldDef, FieldKind, Option, ShowWhen
)

logger = logging.getLogger(__name__)


class CatalogConfigError(ValueError):
    """Raised when the category/field configuration is malformed."""


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

def iter_nodes(nodes: Sequence[CategoryNode], depth: int = 0) -> Iterator[Tuple[CategoryNode, int]]:
    """Yield (node, depth) for every node of the forest, depth-first pre-order."""
    for node in nodes:
        yield node, depth
        yield from iter_nodes(node.children, depth + 1)


def find_node(nodes: Sequence[CategoryNode], category_id: str) -> Optional[CategoryNode]:
    for node, _ in iter_nodes(nodes):
        if node.id == category_id:
            return node
    return None


def aggregate_schema(nodes: Sequence[CategoryNode]) -> AttributeSchemaMap:
    """
    Merge the attribute schemas of every node reachable from ``nodes``.

    Nodes are visited depth-first, pre-order, and each schema is merged into
    the accumulator key by key with later visits overwriting earlier ones.
    A parent is therefore merged before its children, so a child's definition
    of a repeated key wins over its parent's, and a later sibling subtree
    wins over an earlier one. Children are always visited.
    """
    out: AttributeSchemaMap = {}
    for node, _ in iter_nodes(nodes):
        if node.schema:
            out.update(node.schema)
    return out


def selected_roots(nodes: Sequence[CategoryNode], selected_ids: Iterable[str]) -> List[CategoryNode]:
    """
    Selected nodes in tree pre-order, skipping nodes already covered by a
    selected ancestor.
    """
    wanted = set(selected_ids)
    roots: List[CategoryNode] = []

    def walk(level: Sequence[CategoryNode]) -> None:
        for node in level:
            if node.id in wanted:
                roots.append(node)
                continue
            walk(node.children)

    walk(nodes)
    return roots


def schema_for_selection(nodes: Sequence[CategoryNode], selected_ids: Iterable[str]) -> AttributeSchemaMap:
    """
    Attribute schema for the current facet selection.

    With nothing (known) selected this is the schema of the whole forest,
    otherwise the aggregate over the subtrees of the selected nodes.
    """
    roots = selected_roots(nodes, selected_ids)
    if not roots:
        return aggregate_schema(nodes)
    return aggregate_schema(roots)


# ---------------------------------------------------------------------------
# Configuration parsing
# ---------------------------------------------------------------------------

def _number(value: Any, where: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CatalogConfigError(f"{where}: expected a number, got {value!r}")
    return value


def _options(raw: Any, where: str) -> Tuple[Option, ...]:
    options = []
    for item in raw or []:
        if not isinstance(item, dict) or "value" not in item:
            raise CatalogConfigError(f"{where}: option must be an object with a value")
        value = str(item["value"])
        options.append(Option(value=value, label=str(item.get("label", value))))
    return tuple(options)


def parse_attribute(key: str, raw: Dict[str, Any], where: str) -> AttributeDef:
    try:
        kind = AttributeKind(raw.get("type"))
    except ValueError:
        raise CatalogConfigError(f"{where}.{key}: unknown attribute type {raw.get('type')!r}")
    return AttributeDef(
        kind=kind,
        min=_number(raw.get("min"), f"{where}.{key}.min"),
        max=_number(raw.get("max"), f"{where}.{key}.max"),
        step=_number(raw.get("step"), f"{where}.{key}.step"),
        options=_options(raw.get("options"), f"{where}.{key}"),
    )


def parse_category(raw: Dict[str, Any]) -> CategoryNode:
    node_id = raw.get("id")
    if not node_id:
        raise CatalogConfigError(f"category without id: {raw!r}")
    schema = None
    if raw.get("schema") is not None:
        schema = {
            key: parse_attribute(key, definition, f"category {node_id}")
            for key, definition in raw["schema"].items()
        }
    return CategoryNode(
        id=str(node_id),
        name=str(raw.get("name", node_id)),
        slug=str(raw.get("slug", "")),
        schema=schema,
        children=tuple(parse_category(child) for child in raw.get("children") or []),
    )


def parse_field(raw: Dict[str, Any], where: str) -> FieldDef:
    key = raw.get("key")
    if not key:
        raise CatalogConfigError(f"{where}: field without key")
    try:
        kind = FieldKind(raw.get("type", "text"))
    except ValueError:
        raise CatalogConfigError(f"{where}.{key}: unknown field type {raw.get('type')!r}")
    show_when = None
    rule = raw.get("showWhen")
    if rule:
        one_of = (rule.get("oneOf") or []) if isinstance(rule, dict) else None
        if not isinstance(rule, dict) or not rule.get("field") or not isinstance(one_of, (list, tuple)):
            raise CatalogConfigError(f"{where}.{key}: showWhen needs field/oneOf")
        show_when = ShowWhen(field_key=str(rule["field"]), allowed_values=tuple(one_of))
    return FieldDef(
        key=str(key),
        label=str(raw.get("label", key)),
        kind=kind,
        required=bool(raw.get("required", False)),
        min=_number(raw.get("min"), f"{where}.{key}.min"),
        max=_number(raw.get("max"), f"{where}.{key}.max"),
        step=_number(raw.get("step"), f"{where}.{key}.step"),
        options=_options(raw.get("options"), f"{where}.{key}"),
        placeholder=raw.get("placeholder"),
        hint=raw.get("hint"),
        example=raw.get("example"),
        show_when=show_when,
    )


def parse_form_schema(raw: Dict[str, Any]) -> CategoryFieldSchema:
    category_id = raw.get("categoryId")
    if not category_id:
        raise CatalogConfigError(f"form schema without categoryId: {raw!r}")
    where = f"form {category_id}"
    fields = tuple(parse_field(f, where) for f in raw.get("fields") or [])

    keys = [f.key for f in fields]
    duplicates = sorted({k for k in keys if keys.count(k) > 1})
    if duplicates:
        raise CatalogConfigError(f"{where}: duplicate field keys {duplicates}")
    for f in fields:
        if f.show_when and f.show_when.field_key not in keys:
            logger.warning(f"{where}.{f.key}: showWhen references unknown field {f.show_when.field_key!r}")

    return CategoryFieldSchema(
        category_id=str(category_id),
        category_name=str(raw.get("categoryName", category_id)),
        slug=str(raw.get("slug", "")),
        fields=fields,
    )


@dataclass(frozen=True)
class CatalogConfig:
    """
    Category taxonomy plus listing-form schemas.

    Constructed once at startup and passed by reference to every consumer;
    read-only afterwards.
    """
    categories: Tuple[CategoryNode, ...]
    forms: Tuple[CategoryFieldSchema, ...] = ()
    radius_options_km: Tuple[int, ...] = (5, 10, 25, 50, 100, 200)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogConfig":
        categories = tuple(parse_category(c) for c in data.get("categories") or [])
        forms = tuple(parse_form_schema(f) for f in data.get("forms") or [])

        ids = [node.id for node, _ in iter_nodes(categories)]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise CatalogConfigError(f"duplicate category ids {duplicates}")
        form_ids = [f.category_id for f in forms]
        duplicates = sorted({i for i in form_ids if form_ids.count(i) > 1})
        if duplicates:
            raise CatalogConfigError(f"duplicate form schemas for categories {duplicates}")

        radius = tuple(data.get("radiusOptionsKm") or cls.radius_options_km)
        return cls(categories=categories, forms=forms, radius_options_km=radius)

    @classmethod
    def from_file(cls, path: str) -> "CatalogConfig":
        with open(path, encoding="utf-8") as fh:
            try:
                data = json.load(fh)
            except json.JSONDecodeError as e:
                raise CatalogConfigError(f"{path}: invalid JSON ({e})")
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "CatalogConfig":
        """Load from a JSON file when a path is given, else the bundled catalog."""
        config = cls.from_file(path) if path else cls.from_dict(DEFAULT_CATALOG)
        logger.info(
            f"Loaded catalog from {path or 'defaults'}: "
            f"{len(config.category_ids())} categories, {len(config.forms)} form schemas"
        )
        return config

    def category_ids(self) -> List[str]:
        return [node.id for node, _ in iter_nodes(self.categories)]

    def find_category(self, category_id: str) -> Optional[CategoryNode]:
        return find_node(self.categories, category_id)

    def form_schema(self, category_id: str) -> Optional[CategoryFieldSchema]:
        for schema in self.forms:
            if schema.category_id == category_id:
                return schema
        return None

    def form_schema_by_slug(self, slug: str) -> Optional[CategoryFieldSchema]:
        for schema in self.forms:
            if schema.slug == slug:
                return schema
        return None

    def schema_for_selection(self, selected_ids: Iterable[str]) -> AttributeSchemaMap:
        return schema_for_selection(self.categories, selected_ids)
