"""
HTTP client for the marketplace backend: listing search and listing records.
"""
import logging
from typing import Any, Dict, Optional, Type

import httpx

from .models import ResultPage
from .query import to_query_pairs

logger = logging.getLogger(__name__)

SEARCH_PATH = "/listings"
RECORDS_PATH = "/create-edit-listing"


class ClientError(Exception):
    """Backend or network failure, with the backend's message when it sent one."""

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


class SearchError(ClientError):
    """Failure while fetching a page of search results."""


class BackendError(ClientError):
    """Failure while reading or writing a listing record."""


class ListingsClient:
    """
    Async client over ``httpx.AsyncClient``.

    One instance is created per application lifespan and closed on shutdown.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json", **(headers or {})},
        )

    async def __aenter__(self) -> "ListingsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, error_cls: Type[ClientError], **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"{method} {path} timed out")
            raise error_cls(f"Request timed out: {method} {path}") from e
        except httpx.RequestError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise error_cls(f"Backend unreachable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            body = data if isinstance(data, dict) else {}
            message = body.get("message") or response.reason_phrase or f"HTTP {response.status_code}"
            logger.error(f"{method} {path} returned {response.status_code}: {message}")
            raise error_cls(message, status=response.status_code, code=body.get("code"))
        return data

    async def fetch_page(self, params: Dict[str, Any], cursor: Optional[str] = None) -> ResultPage:
        """Fetch one page of listings; ``cursor`` is None for the first page."""
        data = await self._request(
            "GET", SEARCH_PATH, SearchError, params=to_query_pairs(params, cursor)
        )
        if not isinstance(data, dict):
            raise SearchError("Malformed search response")
        try:
            page = ResultPage.from_response(data)
        except (ValueError, TypeError, AttributeError) as e:
            logger.error(f"Malformed search response: {e}")
            raise SearchError("Malformed search response") from e
        logger.debug(f"Fetched {len(page.items)} listings (cursor={cursor!r}, next={page.next_cursor!r})")
        return page

    async def get_record(self, record_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"{RECORDS_PATH}/{record_id}", BackendError)

    async def create_record(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = {**payload, "status": payload.get("status") or "draft"}
        return await self._request("POST", RECORDS_PATH, BackendError, json=body)

    async def update_record(self, record_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PATCH", f"{RECORDS_PATH}/{record_id}", BackendError, json=payload)

    async def publish_record(self, record_id: str) -> Dict[str, Any]:
        return await self._request("PUT", f"{RECORDS_PATH}/{record_id}/publish", BackendError)

    async def save_record(self, payload: Dict[str, Any], record_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a new record, or update an existing one.

        An existing record submitted as ``active`` is published after the
        update; a new one carries its status in the create call.
        """
        if not record_id:
            record = await self.create_record(payload)
        else:
            record = await self.update_record(record_id, payload)
            if payload.get("status") == "active":
                record = await self.publish_record(record_id)
        logger.info(f"Saved listing record {record_id or '(new)'} as {payload.get('status')}")
        return record if isinstance(record, dict) else {}
