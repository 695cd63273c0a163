"""Listing image sets for property cards.

Every card asks for all images of its listing. Cards for the same listing
mount in quick succession (featured carousel and result grid), so the fetch
goes through the shared ``ResourceCache``: one request per listing per TTL.
"""

import asyncio
from typing import Iterable, Optional

from listing_feed.cache.resource_cache import ResourceCache, get_resource_cache
from listing_feed.clients.listing_api import ListingSource
from listing_feed.schemas.listings import Listing
from listing_feed.utils.logging_config import get_logger

logger = get_logger(__name__)

# 5 minutes
DEFAULT_IMAGE_TTL_SECONDS = 300.0


def image_cache_key(listing_id: str) -> str:
    return f"images:{listing_id}"


def merge_with_main_image(images: list[str], main_image_url: Optional[str]) -> list[str]:
    """Put the main image first unless the fetched set already has it."""
    combined = list(images)
    if main_image_url and main_image_url not in combined:
        combined.insert(0, main_image_url)
    return combined


class ListingImageService:
    def __init__(
        self,
        source: ListingSource,
        cache: Optional[ResourceCache] = None,
        ttl_seconds: float = DEFAULT_IMAGE_TTL_SECONDS,
    ):
        self._source = source
        self._cache = cache if cache is not None else get_resource_cache()
        self.ttl_seconds = ttl_seconds

    async def images_for(self, listing: Listing) -> list[str]:
        """
        Return every image URL to show for ``listing``.

        Falls back to the main image alone (or nothing) when the fetch fails;
        the failure is logged, not raised.
        """
        main_url = listing.main_image_url
        if listing.image_count <= 0:
            return [main_url] if main_url else []

        try:
            fetched = await self._cache.get(
                image_cache_key(listing.id),
                lambda: self._source.get_images_for(listing.id),
                self.ttl_seconds,
            )
        except Exception:
            logger.warning("images.fetch_failed", listing_id=listing.id, exc_info=True)
            return [main_url] if main_url else []

        return merge_with_main_image(fetched, main_url)

    async def prefetch(self, listings: Iterable[Listing]) -> dict[str, list[str]]:
        """Resolve image sets for several listings concurrently."""
        unique = {listing.id: listing for listing in listings}
        results = await asyncio.gather(*(self.images_for(listing) for listing in unique.values()))
        return dict(zip(unique.keys(), results))

    def invalidate(self, listing_id: str) -> None:
        self._cache.invalidate(image_cache_key(listing_id))
