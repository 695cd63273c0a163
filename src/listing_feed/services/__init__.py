from listing_feed.services.listing_images import ListingImageService, merge_with_main_image

__all__ = ["ListingImageService", "merge_with_main_image"]
