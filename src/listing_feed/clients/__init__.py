from listing_feed.clients.listing_api import ListingApiClient, ListingSource, extract_image_urls

__all__ = ["ListingApiClient", "ListingSource", "extract_image_urls"]
