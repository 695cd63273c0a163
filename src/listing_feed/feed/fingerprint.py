import json
from typing import Optional

from listing_feed.schemas.listings import SearchFilters

# Pagination cursor and location-derived fields never trigger a reload
NON_MEANINGFUL_FIELDS = frozenset({"page", "limit", "city", "state"})


def filter_fingerprint(filters: Optional[SearchFilters]) -> str:
    """Canonical JSON of the filter fields that change the result set.

    Unset fields are omitted, so ``SearchFilters()`` and
    ``SearchFilters(type=None)`` share a fingerprint.
    """
    if filters is None:
        data: dict = {}
    else:
        data = filters.model_dump(mode="json", exclude_none=True, exclude=set(NON_MEANINGFUL_FIELDS))
    return json.dumps(data, sort_keys=True, separators=(",", ":"))
