"""
Cursor-based incremental pagination over the search endpoint.

Accumulated pages are keyed on the full filter-parameter tuple: a change of
key throws away everything fetched so far and starts again from the first
page. Responses that arrive for a key (or reset) that is no longer current
are dropped on arrival; in-flight requests are never cancelled.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from .client import SearchError
from .models import Listing, ResultPage
from .query import DEFAULT_FILTERS, PAGE_SIZE, SearchFilters, build_params, filters_key

logger = logging.getLogger(__name__)

# (params, cursor) -> page
PageFetcher = Callable[[Dict[str, Any], Optional[str]], Awaitable[ResultPage]]


@dataclass
class PaginationState:
    """Read-only snapshot of a controller."""
    items: List[Listing] = field(default_factory=list)
    total: int = 0
    has_more: bool = False
    is_loading: bool = False
    is_fetching_next_page: bool = False
    is_empty: bool = False
    error: Optional[str] = None


class PaginationController:
    """
    Accumulates result pages for one filter state at a time.

    ``is_loading`` covers a fresh first-page fetch after a filter change;
    ``is_fetching_next_page`` covers appending a page. They are independent.
    There is no timeout here: a request that never completes leaves its flag
    set until a newer filter state supersedes it.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        filters: SearchFilters = DEFAULT_FILTERS,
        page_size: int = PAGE_SIZE
    ):
        self._fetch_page = fetch_page
        self.page_size = page_size
        self.filters = filters
        self.key = filters_key(filters, page_size)
        self._generation = 0

        self.items: List[Listing] = []
        self._seen: Set[str] = set()
        self.total = 0
        self.next_cursor: Optional[str] = None
        self.pages_loaded = 0

        self.is_loading = False
        self.is_fetching_next_page = False
        self.error: Optional[str] = None
        self._failed: Optional[str] = None

    @property
    def params(self) -> Dict[str, Any]:
        return build_params(self.filters, self.page_size)

    @property
    def has_more(self) -> bool:
        return self.pages_loaded > 0 and self.next_cursor is not None

    @property
    def is_empty(self) -> bool:
        return (
            self.pages_loaded > 0
            and not self.is_loading
            and self.error is None
            and len(self.items) == 0
        )

    def snapshot(self) -> PaginationState:
        return PaginationState(
            items=list(self.items),
            total=self.total,
            has_more=self.has_more,
            is_loading=self.is_loading,
            is_fetching_next_page=self.is_fetching_next_page,
            is_empty=self.is_empty,
            error=self.error,
        )

    # -- state transitions --------------------------------------------------

    async def start(self) -> None:
        """Drop everything and fetch the first page of the current filters."""
        await self._load_first()

    refresh = start

    async def set_filters(self, filters: SearchFilters) -> bool:
        """
        Switch to a new filter state.

        Returns True when the key changed and pagination restarted; a change
        that does not reach the query (the view mode) only stores the filters.
        """
        new_key = filters_key(filters, self.page_size)
        self.filters = filters
        if new_key == self.key:
            return False
        self.key = new_key
        await self._load_first()
        return True

    async def load_more(self) -> bool:
        """Append the next page, if there is one and nothing is in flight."""
        if not self.has_more or self.is_loading or self.is_fetching_next_page:
            return False
        await self._load_next(self.next_cursor)
        return True

    async def retry(self) -> bool:
        """Re-issue the request that failed, from scratch."""
        if self.error is None:
            return False
        if self._failed == "next" and self.pages_loaded:
            await self._load_next(self.next_cursor)
        else:
            await self._load_first()
        return True

    # -- internals ------------------------------------------------------------

    def _reset(self) -> None:
        self._generation += 1
        self.items = []
        self._seen = set()
        self.total = 0
        self.next_cursor = None
        self.pages_loaded = 0
        self.error = None
        self._failed = None
        self.is_fetching_next_page = False

    def _ticket(self) -> Tuple[Any, int]:
        return self.key, self._generation

    def _is_stale(self, ticket: Tuple[Any, int]) -> bool:
        return ticket != self._ticket()

    async def _load_first(self) -> None:
        self._reset()
        self.is_loading = True
        ticket = self._ticket()
        try:
            page = await self._fetch_page(self.params, None)
        except SearchError as e:
            if self._is_stale(ticket):
                logger.debug(f"Ignoring failure of superseded first page: {e}")
                return
            logger.error(f"First page fetch failed: {e}")
            self.is_loading = False
            self.error = e.message
            self._failed = "first"
            return
        if self._is_stale(ticket):
            logger.debug("Discarding stale first page")
            return
        self.is_loading = False
        self._accept(page, first=True)

    async def _load_next(self, cursor: Optional[str]) -> None:
        self.is_fetching_next_page = True
        self.error = None
        ticket = self._ticket()
        try:
            page = await self._fetch_page(self.params, cursor)
        except SearchError as e:
            if self._is_stale(ticket):
                logger.debug(f"Ignoring failure of superseded page {cursor!r}: {e}")
                return
            logger.error(f"Page fetch failed at cursor {cursor!r}: {e}")
            self.is_fetching_next_page = False
            self.error = e.message
            self._failed = "next"
            return
        if self._is_stale(ticket):
            logger.debug(f"Discarding stale page at cursor {cursor!r}")
            return
        self.is_fetching_next_page = False
        self._accept(page, first=False)

    def _accept(self, page: ResultPage, first: bool) -> None:
        if first:
            self.items = []
            self._seen = set()
            self.total = page.total
        for listing in page.items:
            if listing.id in self._seen:
                continue
            self._seen.add(listing.id)
            self.items.append(listing)
        self.next_cursor = page.next_cursor
        self.pages_loaded += 1
        self.error = None
        self._failed = None
