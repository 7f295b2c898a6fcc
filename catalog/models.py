"""
Data models for the category schema engine and catalog search results.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class AttributeKind(str, Enum):
    """Kinds of search facets a category schema can declare."""
    RANGE = "range"
    SELECT = "select"
    CHECKBOX = "checkbox"


class FieldKind(str, Enum):
    """Kinds of fields a listing form can contain."""
    TEXT = "text"
    RICH_TEXT = "rich-text"
    NUMBER = "number"
    SELECT = "select"
    MULTI_SELECT = "multi-select"
    DATE = "date"
    LOCATION = "location"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class Option:
    value: str
    label: str


@dataclass(frozen=True)
class AttributeDef:
    """One filterable attribute of a category (range, select or checkbox)."""
    kind: AttributeKind
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    options: Tuple[Option, ...] = ()


# Attribute key -> definition
AttributeSchemaMap = Dict[str, AttributeDef]


@dataclass(frozen=True)
class CategoryNode:
    """A node of the category taxonomy.

    Nodes are loaded once from configuration and never mutated. A node may
    carry an attribute schema; its children are owned exclusively by it.
    """
    id: str
    name: str
    slug: str
    schema: Optional[AttributeSchemaMap] = None
    children: Tuple["CategoryNode", ...] = ()

    @property
    def has_children(self) -> bool:
        return len(self.children) > 0


@dataclass(frozen=True)
class ShowWhen:
    """Single-field visibility rule: visible iff values[field_key] in allowed_values."""
    field_key: str
    allowed_values: Tuple[Any, ...]


@dataclass(frozen=True)
class FieldDef:
    """A typed field of a category's listing form."""
    key: str
    label: str
    kind: FieldKind
    required: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    options: Tuple[Option, ...] = ()
    placeholder: Optional[str] = None
    hint: Optional[str] = None
    example: Optional[str] = None
    show_when: Optional[ShowWhen] = None


@dataclass(frozen=True)
class CategoryFieldSchema:
    """Ordered listing-form fields for one category."""
    category_id: str
    category_name: str
    slug: str
    fields: Tuple[FieldDef, ...] = ()

    def field(self, key: str) -> Optional[FieldDef]:
        for f in self.fields:
            if f.key == key:
                return f
        return None


# Value maps are duck-typed: the runtime type follows the field/attribute kind.
FormValue = Any
FormValueMap = Dict[str, FormValue]
FilterValueMap = Dict[str, Any]
ValidationErrors = Dict[str, str]


@dataclass
class Listing:
    """A marketplace listing as returned by the search backend."""

    id: str
    title: str = ""
    description: str = ""
    price: Optional[float] = None
    currency: str = ""
    category_id: str = ""
    category_name: str = ""
    seller_id: str = ""
    status: str = "active"
    created_at: str = ""
    updated_at: str = ""

    # Media, free-form attributes and optional map position
    images: List[str] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    lat: Optional[float] = None
    lng: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Listing":
        """Build a listing from the backend's camelCase JSON."""
        price = data.get("price")
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title") or "",
            description=data.get("description") or "",
            price=float(price) if price is not None else None,
            currency=data.get("currency") or "",
            category_id=data.get("categoryId") or data.get("category_id") or "",
            category_name=data.get("categoryName") or data.get("category_name") or "",
            seller_id=data.get("sellerId") or data.get("seller_id") or "",
            status=data.get("status") or "active",
            created_at=data.get("createdAt") or data.get("created_at") or "",
            updated_at=data.get("updatedAt") or data.get("updated_at") or "",
            images=list(data.get("images") or []),
            attributes=dict(data.get("attributes") or {}),
            lat=data.get("lat"),
            lng=data.get("lng"),
        )


@dataclass
class ResultPage:
    """One page of search results."""
    items: List[Listing]
    total: int
    next_cursor: Optional[str] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "ResultPage":
        listings = [Listing.from_dict(x) for x in data.get("listings") or []]
        total = data.get("total")
        return cls(
            items=listings,
            total=int(total) if total is not None else len(listings),
            next_cursor=data.get("nextCursor"),
        )
