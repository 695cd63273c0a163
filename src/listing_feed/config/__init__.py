"""Configuration module for the listing feed."""

from listing_feed.config.settings import (
    AppSettings,
    CarouselSettings,
    FeedSettings,
    ImageCacheSettings,
    ListingAPISettings,
    get_app_settings,
)

__all__ = [
    "AppSettings",
    "CarouselSettings",
    "FeedSettings",
    "ImageCacheSettings",
    "ListingAPISettings",
    "get_app_settings",
]
