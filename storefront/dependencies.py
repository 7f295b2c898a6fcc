"""
Request dependencies resolving the objects created in the app lifespan.
"""
from fastapi import HTTPException, Request

from catalog.client import ListingsClient
from catalog.taxonomy import CatalogConfig

from .sessions import BrowseSession, BrowseSessionStore


def get_catalog(request: Request) -> CatalogConfig:
    return request.app.state.catalog


def get_client(request: Request) -> ListingsClient:
    return request.app.state.listings_client


def get_sessions(request: Request) -> BrowseSessionStore:
    return request.app.state.sessions


def get_session(session_id: str, request: Request) -> BrowseSession:
    """Dependency to look up a browse session or 404."""
    session = get_sessions(request).get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Browse session not found")
    return session
