from listing_feed.schemas.listings import (
    Listing,
    ListingImage,
    SearchFilters,
    SearchPage,
    TransactionType,
)

__all__ = [
    "Listing",
    "ListingImage",
    "SearchFilters",
    "SearchPage",
    "TransactionType",
]
