from listing_feed.cache.resource_cache import (
    CacheEntry,
    ResourceCache,
    get_resource_cache,
    reset_resource_cache,
)

__all__ = ["CacheEntry", "ResourceCache", "get_resource_cache", "reset_resource_cache"]
