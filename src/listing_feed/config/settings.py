"""Application settings and runtime config resolution.

Environment-backed defaults for the listing API client, the feed controller,
the image cache and the carousel scheduler. Durations are in seconds.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from listing_feed.utils.logging_config import is_production

# Listing API
ENV_LISTING_API_URL = "LISTING_API_URL"
ENV_LISTING_API_TIMEOUT_SECONDS = "LISTING_API_TIMEOUT_SECONDS"
DEFAULT_LISTING_API_URL = "http://localhost:3000/public"
DEFAULT_LISTING_API_TIMEOUT_SECONDS = 30.0

# Feed
ENV_FEED_PAGE_SIZE = "FEED_PAGE_SIZE"
ENV_FEED_NEAR_BOTTOM_PX = "FEED_NEAR_BOTTOM_PX"
ENV_FEED_SCROLL_SETTLE_SECONDS = "FEED_SCROLL_SETTLE_SECONDS"
DEFAULT_FEED_PAGE_SIZE = 12
DEFAULT_FEED_NEAR_BOTTOM_PX = 300.0
DEFAULT_FEED_SCROLL_SETTLE_SECONDS = 0.5

# Image cache
ENV_IMAGE_CACHE_TTL_SECONDS = "IMAGE_CACHE_TTL_SECONDS"
DEFAULT_IMAGE_CACHE_TTL_SECONDS = 300.0

# Carousel
ENV_CAROUSEL_TICK_SECONDS = "CAROUSEL_TICK_SECONDS"
ENV_CAROUSEL_STEP_PX = "CAROUSEL_STEP_PX"
ENV_CAROUSEL_IDLE_RESUME_SECONDS = "CAROUSEL_IDLE_RESUME_SECONDS"
ENV_CAROUSEL_REWIND_SECONDS = "CAROUSEL_REWIND_SECONDS"
ENV_CAROUSEL_REWIND_GRACE_SECONDS = "CAROUSEL_REWIND_GRACE_SECONDS"
DEFAULT_CAROUSEL_TICK_SECONDS = 0.03
DEFAULT_CAROUSEL_STEP_PX = 0.5
DEFAULT_CAROUSEL_IDLE_RESUME_SECONDS = 5.0
DEFAULT_CAROUSEL_REWIND_SECONDS = 0.6
DEFAULT_CAROUSEL_REWIND_GRACE_SECONDS = 0.3
DEFAULT_CAROUSEL_RESTART_DELAY_SECONDS = 0.2
DEFAULT_CAROUSEL_START_DELAY_SECONDS = 1.0
DEFAULT_CAROUSEL_END_EPSILON_PX = 2.0
DEFAULT_CAROUSEL_EDGE_MARGIN_PX = 5.0


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def _read_int(env: Mapping[str, str], name: str, default: int, minimum: int, maximum: int) -> int:
    try:
        return int(_clamp(int(env.get(name, default)), minimum, maximum))
    except ValueError:
        return default


def _read_float(
    env: Mapping[str, str], name: str, default: float, minimum: float, maximum: float
) -> float:
    try:
        return float(_clamp(float(env.get(name, default)), minimum, maximum))
    except ValueError:
        return default


@dataclass(frozen=True)
class ListingAPISettings:
    base_url: str
    timeout_seconds: float


@dataclass(frozen=True)
class FeedSettings:
    page_size: int
    near_bottom_px: float
    scroll_settle_seconds: float


@dataclass(frozen=True)
class ImageCacheSettings:
    ttl_seconds: float


@dataclass(frozen=True)
class CarouselSettings:
    tick_seconds: float
    step_px: float
    idle_resume_seconds: float
    rewind_seconds: float
    rewind_grace_seconds: float
    restart_delay_seconds: float = DEFAULT_CAROUSEL_RESTART_DELAY_SECONDS
    start_delay_seconds: float = DEFAULT_CAROUSEL_START_DELAY_SECONDS
    end_epsilon_px: float = DEFAULT_CAROUSEL_END_EPSILON_PX
    edge_margin_px: float = DEFAULT_CAROUSEL_EDGE_MARGIN_PX


@dataclass(frozen=True)
class AppSettings:
    api: ListingAPISettings
    feed: FeedSettings
    image_cache: ImageCacheSettings
    carousel: CarouselSettings
    strict_contracts: bool


def resolve_listing_api_settings(env: Mapping[str, str] = os.environ) -> ListingAPISettings:
    base_url = (env.get(ENV_LISTING_API_URL) or DEFAULT_LISTING_API_URL).strip().rstrip("/")
    if not base_url.startswith(("http://", "https://")):
        raise ValueError(f"Invalid {ENV_LISTING_API_URL} '{base_url}'. Expected an http(s) URL")

    return ListingAPISettings(
        base_url=base_url,
        timeout_seconds=_read_float(
            env, ENV_LISTING_API_TIMEOUT_SECONDS, DEFAULT_LISTING_API_TIMEOUT_SECONDS, 1, 120
        ),
    )


def resolve_feed_settings(env: Mapping[str, str] = os.environ) -> FeedSettings:
    return FeedSettings(
        page_size=_read_int(env, ENV_FEED_PAGE_SIZE, DEFAULT_FEED_PAGE_SIZE, 1, 100),
        near_bottom_px=_read_float(env, ENV_FEED_NEAR_BOTTOM_PX, DEFAULT_FEED_NEAR_BOTTOM_PX, 0, 5000),
        scroll_settle_seconds=_read_float(
            env, ENV_FEED_SCROLL_SETTLE_SECONDS, DEFAULT_FEED_SCROLL_SETTLE_SECONDS, 0, 5
        ),
    )


def resolve_image_cache_settings(env: Mapping[str, str] = os.environ) -> ImageCacheSettings:
    return ImageCacheSettings(
        ttl_seconds=_read_float(
            env, ENV_IMAGE_CACHE_TTL_SECONDS, DEFAULT_IMAGE_CACHE_TTL_SECONDS, 1, 86400
        )
    )


def resolve_carousel_settings(env: Mapping[str, str] = os.environ) -> CarouselSettings:
    return CarouselSettings(
        tick_seconds=_read_float(env, ENV_CAROUSEL_TICK_SECONDS, DEFAULT_CAROUSEL_TICK_SECONDS, 0.005, 1),
        step_px=_read_float(env, ENV_CAROUSEL_STEP_PX, DEFAULT_CAROUSEL_STEP_PX, 0.05, 50),
        idle_resume_seconds=_read_float(
            env, ENV_CAROUSEL_IDLE_RESUME_SECONDS, DEFAULT_CAROUSEL_IDLE_RESUME_SECONDS, 0.1, 60
        ),
        rewind_seconds=_read_float(
            env, ENV_CAROUSEL_REWIND_SECONDS, DEFAULT_CAROUSEL_REWIND_SECONDS, 0.05, 10
        ),
        rewind_grace_seconds=_read_float(
            env, ENV_CAROUSEL_REWIND_GRACE_SECONDS, DEFAULT_CAROUSEL_REWIND_GRACE_SECONDS, 0, 5
        ),
    )


def get_app_settings(env: Mapping[str, str] = os.environ) -> AppSettings:
    return AppSettings(
        api=resolve_listing_api_settings(env=env),
        feed=resolve_feed_settings(env=env),
        image_cache=resolve_image_cache_settings(env=env),
        carousel=resolve_carousel_settings(env=env),
        strict_contracts=not is_production(env),
    )
