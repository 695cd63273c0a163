"""Client-side feed, image cache and carousel controllers for the listing marketplace."""

from listing_feed.app import AppContext, create_app_context
from listing_feed.cache import ResourceCache, get_resource_cache
from listing_feed.carousel import AutoAdvanceScheduler, ScrollViewport
from listing_feed.feed import FeedState, IncrementalFeedController
from listing_feed.schemas import Listing, SearchFilters, SearchPage
from listing_feed.timers import AsyncioTimers, VirtualTimers

__all__ = [
    "AppContext",
    "AsyncioTimers",
    "AutoAdvanceScheduler",
    "FeedState",
    "IncrementalFeedController",
    "Listing",
    "ResourceCache",
    "ScrollViewport",
    "SearchFilters",
    "SearchPage",
    "VirtualTimers",
    "create_app_context",
    "get_resource_cache",
]
