"""
Search orchestration: drive cursor pagination to collect results in bulk.
"""
from typing import List, Optional

from .client import ListingsClient
from .models import Listing
from .pagination import PaginationController
from .query import PAGE_SIZE, SearchFilters


async def run_search(
    base_url: str,
    filters: SearchFilters,
    max_items: int,
    page_size: int = PAGE_SIZE,
    timeout: float = 10.0,
    transport=None,
    logger=None
) -> List[Listing]:
    """
    Collect up to ``max_items`` listings for ``filters``, following cursors.

    Stops early on a search error; whatever was accumulated before the
    failure is returned.
    """
    async with ListingsClient(base_url, timeout, transport) as client:
        controller = PaginationController(client.fetch_page, filters, page_size)
        await controller.start()
        while controller.error is None and controller.has_more and len(controller.items) < max_items:
            if logger:
                logger.info(f">>> Loaded {len(controller.items)}/{controller.total} listings")
            await controller.load_more()

    if controller.error is not None and logger:
        logger.error(f">>> Search stopped: {controller.error}")
    if logger:
        logger.info(f">>> Collected {min(len(controller.items), max_items)} listings (total {controller.total})")
    return controller.items[:max_items]


def describe_filters(filters: SearchFilters) -> Optional[str]:
    """One-line summary of the non-default filters, for log output."""
    parts = []
    if filters.keyword:
        parts.append(f"q={filters.keyword!r}")
    if filters.location:
        parts.append(f"location={filters.location!r} ({filters.radius_km} km)")
    if filters.category_ids:
        parts.append(f"categories={','.join(filters.category_ids)}")
    for key, value in filters.attributes.items():
        parts.append(f"{key}={value}")
    return " ".join(parts) or None
