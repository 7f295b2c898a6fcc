"""
Shared pytest fixtures: the bundled catalog, a fake marketplace backend
behind httpx.MockTransport, and a storefront test client.
"""
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from catalog.taxonomy import CatalogConfig
from storefront.config import Config

BACKEND_URL = "http://backend.test/api"


def listing_json(listing_id: str, **extra: Any) -> Dict[str, Any]:
    """A listing as the backend serializes it."""
    data = {
        "id": listing_id,
        "title": f"Listing {listing_id}",
        "description": "",
        "price": 100,
        "currency": "USD",
        "categoryId": "cat-2",
        "categoryName": "Rentals",
        "sellerId": "seller-1",
        "status": "active",
        "images": [],
        "attributes": {},
    }
    data.update(extra)
    return data


class FakeBackend:
    """
    In-memory marketplace REST API.

    ``pages`` maps a cursor (None for the first page) to the search response
    body. Records written through the create-edit endpoints are kept in
    ``records``.
    """

    def __init__(self):
        self.pages: Dict[Optional[str], Dict[str, Any]] = {None: {"listings": []}}
        self.search_error: Optional[httpx.Response] = None
        self.records: Dict[str, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def search_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/listings")]

    def last_query(self) -> List[tuple]:
        return list(self.search_requests()[-1].url.params.multi_items())

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/listings"):
            if self.search_error is not None:
                return self.search_error
            cursor = request.url.params.get("cursor")
            return httpx.Response(200, json=self.pages.get(cursor, {"listings": []}))
        if "/create-edit-listing" in path:
            return self._records(request, path.split("/create-edit-listing", 1)[1].strip("/"))
        return httpx.Response(404, json={"message": "Not found"})

    def _records(self, request: httpx.Request, rest: str) -> httpx.Response:
        parts = [p for p in rest.split("/") if p]
        body = json.loads(request.content) if request.content else {}
        if not parts and request.method == "POST":
            record_id = f"rec-{len(self.records) + 1}"
            self.records[record_id] = {**body, "id": record_id}
            return httpx.Response(201, json=self.records[record_id])

        record = self.records.get(parts[0]) if parts else None
        if record is None:
            return httpx.Response(404, json={"message": "Listing not found", "code": "NOT_FOUND"})
        if request.method == "GET":
            return httpx.Response(200, json=record)
        if request.method == "PATCH":
            record.update(body)
            return httpx.Response(200, json=record)
        if request.method == "PUT" and parts[1:] == ["publish"]:
            record["status"] = "active"
            return httpx.Response(200, json=record)
        return httpx.Response(405, json={"message": "Method not allowed"})


@pytest.fixture
def catalog_config():
    return CatalogConfig.load()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def settings():
    s = Config()
    s.MARKET_API_URL = BACKEND_URL
    s.CATALOG_CONFIG = None
    s.LOG_FILE = None
    s.PAGE_SIZE = 2
    s.MAX_SESSIONS = 10
    s.DEFAULT_RADIUS_KM = 25
    return s


@pytest.fixture
def client(settings, backend):
    from fastapi.testclient import TestClient
    from storefront.main import create_app

    with TestClient(create_app(settings, backend.transport)) as test_client:
        yield test_client
