"""Utility helpers shared across the feed controllers."""

from listing_feed.utils.logging_config import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    is_production,
)

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "is_production",
]
