"""
Composition root for the listing feed.

Builds the shared pieces once per process (settings, logging, API client,
image cache) and hands out controllers wired to them.

Usage:
    context = create_app_context()
    feed = context.new_feed_controller(on_change=render)
    feed.set_location("Curitiba", "PR")
    pending = feed.set_filters(SearchFilters(type="apartment"))
    if pending is not None:
        await pending
    ...
    await context.aclose()
"""

import os
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

from dotenv import load_dotenv

from listing_feed.cache.resource_cache import ResourceCache, get_resource_cache
from listing_feed.carousel.layout import ScrollViewport
from listing_feed.carousel.scheduler import AutoAdvanceScheduler
from listing_feed.clients.listing_api import ListingApiClient, ListingSource
from listing_feed.config.settings import AppSettings, get_app_settings
from listing_feed.feed.controller import DEFAULT_CONTAINER_ID, IncrementalFeedController
from listing_feed.feed.state import FeedState
from listing_feed.services.listing_images import ListingImageService
from listing_feed.timers import AsyncioTimers, Timers
from listing_feed.utils.logging_config import configure_logging, get_logger

logger = get_logger(__name__)


@dataclass
class AppContext:
    settings: AppSettings
    source: ListingSource
    cache: ResourceCache
    images: ListingImageService
    timers: Timers = field(default_factory=AsyncioTimers)

    def new_feed_controller(
        self,
        *,
        container_id: str = DEFAULT_CONTAINER_ID,
        on_change: Optional[Callable[[FeedState], None]] = None,
        on_scroll_into_view: Optional[Callable[[str], None]] = None,
    ) -> IncrementalFeedController:
        feed = self.settings.feed
        return IncrementalFeedController(
            self.source,
            self.timers,
            page_size=feed.page_size,
            near_bottom_px=feed.near_bottom_px,
            scroll_settle_seconds=feed.scroll_settle_seconds,
            strict_contracts=self.settings.strict_contracts,
            container_id=container_id,
            on_change=on_change,
            on_scroll_into_view=on_scroll_into_view,
        )

    def new_carousel(
        self,
        viewport: ScrollViewport,
        on_position: Optional[Callable[[float], None]] = None,
    ) -> AutoAdvanceScheduler:
        return AutoAdvanceScheduler(
            viewport,
            self.timers,
            self.settings.carousel,
            on_position=on_position,
        )

    async def aclose(self) -> None:
        aclose = getattr(self.source, "aclose", None)
        if aclose is not None:
            await aclose()
        logger.info("listing_feed.closed")


def create_app_context(
    env: Optional[Mapping[str, str]] = None,
    *,
    source: Optional[ListingSource] = None,
    cache: Optional[ResourceCache] = None,
    timers: Optional[Timers] = None,
    setup_logging: bool = True,
) -> AppContext:
    """Load ``.env``, configure logging and build the shared collaborators."""
    if env is None:
        load_dotenv()
        env = os.environ

    if setup_logging:
        configure_logging(env=env)

    settings = get_app_settings(env=env)
    if source is None:
        source = ListingApiClient(settings.api.base_url, timeout=settings.api.timeout_seconds)
    if cache is None:
        cache = get_resource_cache()

    context = AppContext(
        settings=settings,
        source=source,
        cache=cache,
        images=ListingImageService(source, cache, ttl_seconds=settings.image_cache.ttl_seconds),
        timers=timers if timers is not None else AsyncioTimers(),
    )
    logger.info(
        "listing_feed.ready",
        api=settings.api.base_url,
        page_size=settings.feed.page_size,
        strict_contracts=settings.strict_contracts,
    )
    return context
