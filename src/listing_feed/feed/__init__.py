from listing_feed.feed.controller import IncrementalFeedController, apply_transaction_filter
from listing_feed.feed.fingerprint import NON_MEANINGFUL_FIELDS, filter_fingerprint
from listing_feed.feed.state import FeedPhase, FeedState, Location

__all__ = [
    "FeedPhase",
    "FeedState",
    "IncrementalFeedController",
    "Location",
    "NON_MEANINGFUL_FIELDS",
    "apply_transaction_filter",
    "filter_fingerprint",
]
