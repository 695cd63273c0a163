"""
Listing API Client

Async client for the public listing endpoints consumed by the feed
controller and the image service:

    GET /properties                 paginated search
    GET /properties/{id}/images     every image of one listing

Both calls are idempotent. Non-2xx answers and network failures raise
``DataSourceError``; bodies that do not match the contract raise
``ContractViolationError``.
"""

from typing import Any, Optional, Protocol

import httpx
from pydantic import ValidationError

from listing_feed.errors import ContractViolationError, DataSourceError
from listing_feed.schemas.listings import SearchFilters, SearchPage
from listing_feed.utils.logging_config import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "listing-api"

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class ListingSource(Protocol):
    """What the controllers need from the data source."""

    async def search(self, filters: SearchFilters, page: int, limit: int) -> SearchPage: ...

    async def get_images_for(self, listing_id: str) -> list[str]: ...


def extract_image_urls(payload: Any) -> list[str]:
    """
    Normalize an images payload into a list of URLs.

    The endpoint answers either a bare array or ``{"images": [...]}``. Entries
    are URL strings or objects with ``url``/``thumbnailUrl`` (``url`` wins).
    Blank URLs are dropped; duplicates are kept in order.

    Raises:
        ContractViolationError: If the payload has neither shape.
    """
    if isinstance(payload, list):
        entries = payload
    elif isinstance(payload, dict) and isinstance(payload.get("images"), list):
        entries = payload["images"]
    else:
        raise ContractViolationError(f"unrecognized images payload of type {type(payload).__name__}")

    urls: list[str] = []
    for entry in entries:
        if isinstance(entry, str):
            url = entry
        elif isinstance(entry, dict):
            url = entry.get("url") or entry.get("thumbnailUrl") or ""
        else:
            continue
        if isinstance(url, str) and url.strip():
            urls.append(url)
    return urls


class ListingApiClient:
    """httpx-based implementation of ``ListingSource``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={**DEFAULT_HEADERS, **(headers or {})},
            transport=transport,
        )

    async def __aenter__(self) -> "ListingApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: Optional[dict[str, str]] = None) -> Any:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("listing_api.request_failed", path=path, exc_type=type(e).__name__, error=str(e))
            raise DataSourceError(SERVICE_NAME, f"{type(e).__name__}: {e}") from e

        if response.status_code >= 400:
            logger.debug("listing_api.status", path=path, status_code=response.status_code)
            raise DataSourceError(
                SERVICE_NAME,
                f"GET {path} returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ContractViolationError(f"GET {path} returned a non-JSON body") from e

    async def search(self, filters: SearchFilters, page: int, limit: int) -> SearchPage:
        """Fetch one page of listings matching ``filters``."""
        params = filters.to_query_params()
        params["page"] = str(page)
        params["limit"] = str(limit)

        payload = await self._get_json("/properties", params=params)
        try:
            result = SearchPage.model_validate(payload)
        except ValidationError as e:
            raise ContractViolationError(f"search page: {e.error_count()} validation error(s)") from e

        logger.debug(
            "listing_api.search",
            page=result.page,
            total=result.total,
            total_pages=result.total_pages,
            received=len(result.items),
        )
        return result

    async def get_images_for(self, listing_id: str) -> list[str]:
        """Fetch every image URL of one listing."""
        payload = await self._get_json(f"/properties/{listing_id}/images")
        urls = extract_image_urls(payload)
        logger.debug("listing_api.images", listing_id=listing_id, count=len(urls))
        return urls
