"""
Server-side browse sessions: one filter state and pagination controller per
open browse page.
"""
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional

from catalog.models import AttributeSchemaMap
from catalog.pagination import PageFetcher, PaginationController
from catalog.query import SearchFilters
from catalog.taxonomy import CatalogConfig
from catalog.utils import now_iso

logger = logging.getLogger(__name__)


@dataclass
class BrowseSession:
    id: str
    catalog: CatalogConfig
    controller: PaginationController
    default_filters: SearchFilters
    created_at: str

    @property
    def filters(self) -> SearchFilters:
        return self.controller.filters

    def schema(self) -> AttributeSchemaMap:
        """Facet schema of the current category selection."""
        return self.catalog.schema_for_selection(self.filters.category_ids)

    async def apply(self, filters: SearchFilters) -> bool:
        return await self.controller.set_filters(filters)


class BrowseSessionStore:
    """In-memory sessions, least recently used evicted beyond ``max_sessions``."""

    def __init__(
        self,
        catalog: CatalogConfig,
        fetch_page: PageFetcher,
        default_filters: SearchFilters,
        page_size: int,
        max_sessions: int = 1000
    ):
        self.catalog = catalog
        self.fetch_page = fetch_page
        self.default_filters = default_filters
        self.page_size = page_size
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, BrowseSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, filters: Optional[SearchFilters] = None) -> BrowseSession:
        session = BrowseSession(
            id=uuid.uuid4().hex,
            catalog=self.catalog,
            controller=PaginationController(
                self.fetch_page, filters or self.default_filters, self.page_size
            ),
            default_filters=self.default_filters,
            created_at=now_iso(),
        )
        self._sessions[session.id] = session
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info(f"Evicted browse session {evicted}")
        return session

    def get(self, session_id: str) -> Optional[BrowseSession]:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def drop(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None
