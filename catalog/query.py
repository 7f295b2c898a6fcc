"""
Browse filter state and its translation into search query parameters.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Hashable, List, Optional, Tuple

from .facets import toggle
from .filters import set_filter_value, toggle_checkbox
from .utils import format_param_value

PAGE_SIZE = 24
DEFAULT_RADIUS_KM = 25


class Sort(str, Enum):
    RELEVANCE = "relevance"
    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    RATING = "rating"


class View(str, Enum):
    GRID = "grid"
    LIST = "list"
    MAP = "map"


@dataclass(frozen=True)
class SearchFilters:
    """Complete filter state of the browse page. Replaced, never mutated."""
    keyword: str = ""
    location: str = ""
    radius_km: float = DEFAULT_RADIUS_KM
    category_ids: Tuple[str, ...] = ()
    sort: Sort = Sort.RELEVANCE
    view: View = View.GRID
    attributes: Dict[str, Any] = field(default_factory=dict)
    lat: Optional[float] = None
    lng: Optional[float] = None


DEFAULT_FILTERS = SearchFilters()


def clear_filters(default: SearchFilters = DEFAULT_FILTERS) -> SearchFilters:
    return replace(default, attributes=dict(default.attributes))


def update_filters(filters: SearchFilters, **changes: Any) -> SearchFilters:
    """Return a copy with the given fields changed (enum/sequence fields coerced)."""
    if "sort" in changes:
        changes["sort"] = Sort(changes["sort"])
    if "view" in changes:
        changes["view"] = View(changes["view"])
    if "category_ids" in changes:
        changes["category_ids"] = tuple(changes["category_ids"])
    if "attributes" in changes:
        changes["attributes"] = dict(changes["attributes"])
    return replace(filters, **changes)


def toggle_category(filters: SearchFilters, category_id: str) -> SearchFilters:
    return replace(filters, category_ids=tuple(toggle(filters.category_ids, category_id)))


def set_attribute(filters: SearchFilters, key: str, value: Any) -> SearchFilters:
    return replace(filters, attributes=set_filter_value(filters.attributes, key, value))


def toggle_attribute_option(filters: SearchFilters, key: str, option_value: str) -> SearchFilters:
    return set_attribute(filters, key, toggle_checkbox(filters.attributes, key, option_value))


def build_params(filters: SearchFilters, limit: int = PAGE_SIZE) -> Dict[str, Any]:
    """
    Flat query contract for the search endpoint.

    ``categoryId`` carries the first selected category for older backends
    alongside the full ``categoryIds`` list. Attributes are spread last and
    verbatim, so an attribute named like a reserved parameter overrides it;
    attributes whose value is '' or None are left out. ``view`` is never sent.
    """
    params: Dict[str, Any] = {}
    if filters.keyword:
        params["q"] = filters.keyword
    if filters.location:
        params["location"] = filters.location
    params["radiusKm"] = filters.radius_km
    params["sort"] = Sort(filters.sort).value
    params["limit"] = limit
    if filters.category_ids:
        params["categoryIds"] = list(filters.category_ids)
        params["categoryId"] = filters.category_ids[0]
    if filters.lat is not None and filters.lng is not None:
        params["lat"] = filters.lat
        params["lng"] = filters.lng
    for key, value in filters.attributes.items():
        if value is None or value == "":
            continue
        params[key] = list(value) if isinstance(value, (list, tuple)) else value
    return params


def to_query_pairs(params: Dict[str, Any], cursor: Optional[str] = None) -> List[Tuple[str, str]]:
    """Querystring pairs; list values become repeated keys."""
    pairs: List[Tuple[str, str]] = []
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            pairs.extend((key, format_param_value(v)) for v in value)
        else:
            pairs.append((key, format_param_value(value)))
    if cursor is not None:
        pairs.append(("cursor", cursor))
    return pairs


def _freeze(value: Any) -> Hashable:
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in value.items()))
    return value


def filters_key(filters: SearchFilters, limit: int = PAGE_SIZE) -> Tuple[Any, ...]:
    """
    Cache key of a filter state: the full parameter tuple.

    Any change that reaches the query parameters changes the key; ``view``
    and the cursor do not.
    """
    return tuple((k, _freeze(v)) for k, v in build_params(filters, limit).items())
