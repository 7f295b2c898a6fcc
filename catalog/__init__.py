"""
Marketplace catalog engine: category schemas, listing forms, search filters
and paginated search.
"""
from .models import (
    AttributeDef,
    AttributeKind,
    CategoryFieldSchema,
    CategoryNode,
    FieldDef,
    FieldKind,
    Listing,
    Option,
    ResultPage,
    ShowWhen,
)
from .taxonomy import CatalogConfig, CatalogConfigError, aggregate_schema, schema_for_selection
from .form_engine import FormEngine, FormSession, FormValidationError, UnknownCategoryError
from .filters import render_filters, set_filter_value, toggle_checkbox
from .facets import facet_entries, toggle
from .query import SearchFilters, Sort, View, build_params, filters_key, to_query_pairs
from .client import BackendError, ClientError, ListingsClient, SearchError
from .pagination import PaginationController, PaginationState
from .core import run_search
from .utils import init_logger, now_iso

__version__ = "1.0.0"

__all__ = [
    "AttributeDef",
    "AttributeKind",
    "CategoryFieldSchema",
    "CategoryNode",
    "FieldDef",
    "FieldKind",
    "Listing",
    "Option",
    "ResultPage",
    "ShowWhen",
    "CatalogConfig",
    "CatalogConfigError",
    "aggregate_schema",
    "schema_for_selection",
    "FormEngine",
    "FormSession",
    "FormValidationError",
    "UnknownCategoryError",
    "render_filters",
    "set_filter_value",
    "toggle_checkbox",
    "facet_entries",
    "toggle",
    "SearchFilters",
    "Sort",
    "View",
    "build_params",
    "filters_key",
    "to_query_pairs",
    "BackendError",
    "ClientError",
    "ListingsClient",
    "SearchError",
    "PaginationController",
    "PaginationState",
    "run_search",
    "init_logger",
    "now_iso",
]
