"""
Category facet tree: multi-select over the category taxonomy.
"""
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .models import CategoryNode
from .taxonomy import iter_nodes
from .utils import toggle_member


@dataclass(frozen=True)
class FacetEntry:
    id: str
    name: str
    slug: str
    depth: int
    selected: bool
    has_children: bool


def toggle(selected_ids: Sequence[str], category_id: str) -> List[str]:
    """
    Toggle one category in the selection.

    Selection does not cascade: selecting a parent leaves its children as
    they are, and the other way around.
    """
    return toggle_member(selected_ids, category_id)


def facet_entries(nodes: Sequence[CategoryNode], selected_ids: Iterable[str]) -> List[FacetEntry]:
    """Flatten the tree in render order (pre-order) with selection state."""
    selected = set(selected_ids)
    return [
        FacetEntry(
            id=node.id,
            name=node.name,
            slug=node.slug,
            depth=depth,
            selected=node.id in selected,
            has_children=node.has_children,
        )
        for node, depth in iter_nodes(nodes)
    ]
