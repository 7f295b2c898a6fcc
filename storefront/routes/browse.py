"""
API route handlers for browse sessions: filters, facets and paginated results.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from catalog.export import listings_to_csv
from catalog.facets import facet_entries
from catalog.filters import parse_filter_input, render_filters
from catalog.query import (
    clear_filters, set_attribute, to_query_pairs, toggle_attribute_option,
    toggle_category, update_filters
)

from ..dependencies import get_session, get_sessions
from ..models import (
    AttributeValueIn, BrowseStateOut, FiltersPatch, OptionToggleIn, ParamsOut
)
from ..sessions import BrowseSession, BrowseSessionStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/browse", tags=["browse"])


def browse_state(session: BrowseSession) -> BrowseStateOut:
    filters = session.filters
    return BrowseStateOut.build(
        session_id=session.id,
        filters=filters,
        facets=facet_entries(session.catalog.categories, filters.category_ids),
        controls=render_filters(session.schema(), filters.attributes),
        state=session.controller.snapshot(),
    )


@router.post("", response_model=BrowseStateOut, status_code=201)
async def create_browse_session(
    patch: Optional[FiltersPatch] = Body(default=None),
    category_ids: List[str] = Query(default=[], alias="categoryId"),
    sessions: BrowseSessionStore = Depends(get_sessions)
):
    """Open a browse session and load its first page."""
    filters = sessions.default_filters
    if patch is not None:
        filters = update_filters(filters, **patch.model_dump(exclude_none=True))
    for category_id in category_ids:
        if sessions.catalog.find_category(category_id) is None:
            raise HTTPException(status_code=404, detail="Unknown category")
    if category_ids:
        filters = update_filters(filters, category_ids=dict.fromkeys(category_ids))

    session = sessions.create(filters)
    logger.info(f"Opened browse session {session.id}")
    await session.controller.start()
    return browse_state(session)


@router.get("/{session_id}", response_model=BrowseStateOut)
async def get_browse_state(session: BrowseSession = Depends(get_session)):
    return browse_state(session)


@router.patch("/{session_id}/filters", response_model=BrowseStateOut)
async def patch_filters(patch: FiltersPatch, session: BrowseSession = Depends(get_session)):
    """Change keyword, location, radius, sort, view or coordinates."""
    await session.apply(update_filters(session.filters, **patch.model_dump(exclude_none=True)))
    return browse_state(session)


@router.post("/{session_id}/categories/{category_id}/toggle", response_model=BrowseStateOut)
async def toggle_category_facet(category_id: str, session: BrowseSession = Depends(get_session)):
    if session.catalog.find_category(category_id) is None:
        raise HTTPException(status_code=404, detail="Unknown category")
    await session.apply(toggle_category(session.filters, category_id))
    return browse_state(session)


@router.put("/{session_id}/attributes/{key}", response_model=BrowseStateOut)
async def put_attribute(
    key: str,
    body: AttributeValueIn,
    session: BrowseSession = Depends(get_session)
):
    """Replace one attribute value; '' or null leaves it out of the query."""
    value = parse_filter_input(session.schema().get(key), body.value)
    await session.apply(set_attribute(session.filters, key, value))
    return browse_state(session)


@router.post("/{session_id}/attributes/{key}/toggle", response_model=BrowseStateOut)
async def toggle_attribute(
    key: str,
    body: OptionToggleIn,
    session: BrowseSession = Depends(get_session)
):
    await session.apply(toggle_attribute_option(session.filters, key, body.value))
    return browse_state(session)


@router.post("/{session_id}/load-more", response_model=BrowseStateOut)
async def load_more(session: BrowseSession = Depends(get_session)):
    await session.controller.load_more()
    return browse_state(session)


@router.post("/{session_id}/retry", response_model=BrowseStateOut)
async def retry(session: BrowseSession = Depends(get_session)):
    await session.controller.retry()
    return browse_state(session)


@router.post("/{session_id}/clear", response_model=BrowseStateOut)
async def clear(session: BrowseSession = Depends(get_session)):
    """Reset every filter to the session defaults."""
    await session.apply(clear_filters(session.default_filters))
    return browse_state(session)


@router.get("/{session_id}/params", response_model=ParamsOut)
async def get_params(session: BrowseSession = Depends(get_session)):
    """Query parameters of the current filter state, as sent to the backend."""
    params = session.controller.params
    return ParamsOut(params=params, query=to_query_pairs(params))


@router.get("/{session_id}/export.csv")
async def export_csv(session: BrowseSession = Depends(get_session)):
    """Export the accumulated results as CSV."""
    csv_content = listings_to_csv(session.controller.items)
    return StreamingResponse(
        iter([csv_content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="listings_{session.id[:8]}.csv"'}
    )


@router.delete("/{session_id}", status_code=204)
async def close_browse_session(session_id: str, sessions: BrowseSessionStore = Depends(get_sessions)):
    if not sessions.drop(session_id):
        raise HTTPException(status_code=404, detail="Browse session not found")
    logger.info(f"Closed browse session {session_id}")
