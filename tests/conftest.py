"""Shared fakes for the listing feed tests."""

import asyncio
import math
from typing import Callable, Optional

import pytest

from listing_feed.cache import reset_resource_cache
from listing_feed.schemas.listings import Listing, SearchFilters, SearchPage
from listing_feed.timers import VirtualTimers

PageHandler = Callable[[SearchFilters, int, int], SearchPage]


def make_listing(
    listing_id: str,
    sale_price: Optional[float] = None,
    rent_price: Optional[float] = None,
    image_count: int = 0,
    main_image_url: Optional[str] = None,
) -> Listing:
    return Listing(
        id=listing_id,
        title=f"Listing {listing_id}",
        sale_price=sale_price,
        rent_price=rent_price,
        image_count=image_count,
        main_image={"url": main_image_url} if main_image_url else None,
    )


def catalog_handler(total: int = 30) -> PageHandler:
    """Paginate ``total`` listings whose ids are prefixed by the type filter."""

    def handler(filters: SearchFilters, page: int, limit: int) -> SearchPage:
        prefix = filters.type or "any"
        start = (page - 1) * limit
        items = [
            make_listing(f"{prefix}-{i}", sale_price=100_000 + i)
            for i in range(start, min(start + limit, total))
        ]
        return SearchPage(
            items=items,
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
        )

    return handler


class FakeListingSource:
    """In-memory ``ListingSource`` that records every call.

    Set ``gate`` to an ``asyncio.Event`` to hold responses until it is set.
    """

    def __init__(self, handler: Optional[PageHandler] = None):
        self.handler = handler or catalog_handler()
        self.search_calls: list[tuple[SearchFilters, int, int]] = []
        self.image_calls: list[str] = []
        self.images: dict[str, list[str]] = {}
        self.image_error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None

    async def search(self, filters: SearchFilters, page: int, limit: int) -> SearchPage:
        self.search_calls.append((filters, page, limit))
        if self.gate is not None:
            await self.gate.wait()
        return self.handler(filters, page, limit)

    async def get_images_for(self, listing_id: str) -> list[str]:
        self.image_calls.append(listing_id)
        if self.gate is not None:
            await self.gate.wait()
        if self.image_error is not None:
            raise self.image_error
        return list(self.images.get(listing_id, []))


@pytest.fixture
def timers() -> VirtualTimers:
    return VirtualTimers()


@pytest.fixture
def source() -> FakeListingSource:
    return FakeListingSource()


@pytest.fixture(autouse=True)
def _reset_shared_cache():
    """Keep the process-wide cache from leaking between tests."""
    reset_resource_cache()
    yield
    reset_resource_cache()
