"""
Pydantic models for request/response serialization.
"""
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from catalog.facets import FacetEntry
from catalog.filters import FilterControl
from catalog.form_engine import FieldControl
from catalog.models import AttributeDef, CategoryFieldSchema, CategoryNode, FieldDef, Listing
from catalog.pagination import PaginationState
from catalog.query import SearchFilters, Sort, View


class OptionOut(BaseModel):
    value: str
    label: str


class AttributeDefOut(BaseModel):
    """Facet definition of a category schema."""
    kind: str
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    options: List[OptionOut] = []

    @classmethod
    def from_def(cls, definition: AttributeDef) -> "AttributeDefOut":
        return cls(
            kind=definition.kind.value,
            min=definition.min,
            max=definition.max,
            step=definition.step,
            options=[OptionOut(value=o.value, label=o.label) for o in definition.options],
        )


class CategoryNodeOut(BaseModel):
    """Category tree node, children nested."""
    id: str
    name: str
    slug: str
    schema_: Optional[Dict[str, AttributeDefOut]] = Field(default=None, serialization_alias="schema")
    children: List["CategoryNodeOut"] = []

    @classmethod
    def from_node(cls, node: CategoryNode) -> "CategoryNodeOut":
        schema = None
        if node.schema is not None:
            schema = {k: AttributeDefOut.from_def(d) for k, d in node.schema.items()}
        return cls(
            id=node.id,
            name=node.name,
            slug=node.slug,
            schema_=schema,
            children=[cls.from_node(c) for c in node.children],
        )


CategoryNodeOut.model_rebuild()


class ShowWhenOut(BaseModel):
    field_key: str
    allowed_values: List[Any]


class FieldDefOut(BaseModel):
    key: str
    label: str
    kind: str
    required: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    options: List[OptionOut] = []
    placeholder: Optional[str] = None
    hint: Optional[str] = None
    example: Optional[str] = None
    show_when: Optional[ShowWhenOut] = None

    @classmethod
    def from_def(cls, f: FieldDef) -> "FieldDefOut":
        show_when = None
        if f.show_when is not None:
            show_when = ShowWhenOut(
                field_key=f.show_when.field_key,
                allowed_values=list(f.show_when.allowed_values),
            )
        return cls(
            key=f.key,
            label=f.label,
            kind=f.kind.value,
            required=f.required,
            min=f.min,
            max=f.max,
            step=f.step,
            options=[OptionOut(value=o.value, label=o.label) for o in f.options],
            placeholder=f.placeholder,
            hint=f.hint,
            example=f.example,
            show_when=show_when,
        )


class FormSchemaOut(BaseModel):
    category_id: str
    category_name: str
    slug: str
    fields: List[FieldDefOut]

    @classmethod
    def from_schema(cls, schema: CategoryFieldSchema) -> "FormSchemaOut":
        return cls(
            category_id=schema.category_id,
            category_name=schema.category_name,
            slug=schema.slug,
            fields=[FieldDefOut.from_def(f) for f in schema.fields],
        )


class FieldControlOut(BaseModel):
    key: str
    label: str
    kind: str
    input_type: str
    value: Any = None
    required: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    rows: Optional[int] = None
    placeholder: Optional[str] = None
    hint: Optional[str] = None
    example: Optional[str] = None
    options: List[Dict[str, Any]] = []
    error: Optional[str] = None
    is_set: bool = True

    @classmethod
    def from_control(cls, control: FieldControl) -> "FieldControlOut":
        return cls(**vars(control))


class FormValuesIn(BaseModel):
    """Current form values, optionally with one field update to apply first."""
    values: Dict[str, Any] = {}
    key: Optional[str] = None
    value: Any = None
    errors: Dict[str, str] = {}


class FormStateOut(BaseModel):
    category_id: str
    values: Dict[str, Any]
    visible_fields: List[str]
    controls: List[FieldControlOut]
    errors: Dict[str, str] = {}
    ok: bool = True


class SubmissionOut(BaseModel):
    payload: Dict[str, Any]
    record: Dict[str, Any]


class ListingOut(BaseModel):
    """Output model for listing data."""
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
    images: List[str] = []
    attributes: Dict[str, Any] = {}
    lat: Optional[float] = None
    lng: Optional[float] = None

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingOut":
        return cls(**vars(listing))


class SearchFiltersOut(BaseModel):
    keyword: str
    location: str
    radius_km: float
    category_ids: List[str]
    sort: Sort
    view: View
    attributes: Dict[str, Any]
    lat: Optional[float] = None
    lng: Optional[float] = None

    @classmethod
    def from_filters(cls, filters: SearchFilters) -> "SearchFiltersOut":
        return cls(
            keyword=filters.keyword,
            location=filters.location,
            radius_km=filters.radius_km,
            category_ids=list(filters.category_ids),
            sort=filters.sort,
            view=filters.view,
            attributes=dict(filters.attributes),
            lat=filters.lat,
            lng=filters.lng,
        )


class FiltersPatch(BaseModel):
    """Partial update of the scalar browse filters."""
    keyword: Optional[str] = None
    location: Optional[str] = None
    radius_km: Optional[float] = None
    sort: Optional[Sort] = None
    view: Optional[View] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


class AttributeValueIn(BaseModel):
    value: Any = None


class OptionToggleIn(BaseModel):
    value: str


class FacetEntryOut(BaseModel):
    id: str
    name: str
    slug: str
    depth: int
    selected: bool
    has_children: bool

    @classmethod
    def from_entry(cls, entry: FacetEntry) -> "FacetEntryOut":
        return cls(**vars(entry))


class FilterControlOut(BaseModel):
    key: str
    label: str
    kind: str
    value: Any = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    options: List[Dict[str, Any]] = []

    @classmethod
    def from_control(cls, control: FilterControl) -> "FilterControlOut":
        return cls(**vars(control))


class BrowseStateOut(BaseModel):
    """Full browse page state for one session."""
    session_id: str
    filters: SearchFiltersOut
    facets: List[FacetEntryOut]
    controls: List[FilterControlOut]
    items: List[ListingOut]
    total: int
    has_more: bool
    is_loading: bool
    is_fetching_next_page: bool
    is_empty: bool
    error: Optional[str] = None

    @classmethod
    def build(
        cls,
        session_id: str,
        filters: SearchFilters,
        facets: List[FacetEntry],
        controls: List[FilterControl],
        state: PaginationState
    ) -> "BrowseStateOut":
        return cls(
            session_id=session_id,
            filters=SearchFiltersOut.from_filters(filters),
            facets=[FacetEntryOut.from_entry(e) for e in facets],
            controls=[FilterControlOut.from_control(c) for c in controls],
            items=[ListingOut.from_listing(x) for x in state.items],
            total=state.total,
            has_more=state.has_more,
            is_loading=state.is_loading,
            is_fetching_next_page=state.is_fetching_next_page,
            is_empty=state.is_empty,
            error=state.error,
        )


class ParamsOut(BaseModel):
    params: Dict[str, Any]
    query: List[Tuple[str, str]]


class ListingFormIn(BaseModel):
    """
    htmx post of the listing form fragment.

    ``state`` is the JSON carried in the fragment's hidden input; ``key`` and
    ``value`` are the field that changed, ``action`` a button press.
    """
    state: str = "{}"
    key: Optional[str] = None
    value: Any = None
    action: Optional[str] = None
