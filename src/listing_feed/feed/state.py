"""State containers for the incremental listing feed."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from listing_feed.schemas.listings import Listing


class FeedPhase(str, Enum):
    IDLE = "idle"
    LOADING_INITIAL = "loading_initial"
    READY = "ready"
    LOADING_MORE = "loading_more"


@dataclass(frozen=True)
class Location:
    """The user's confirmed location; every search is scoped to it."""

    city: str
    state: Optional[str] = None


@dataclass
class FeedState:
    """What the result grid renders.

    ``items`` keeps display order and holds each listing id once;
    ``len(items) <= total`` always holds.
    """

    items: list[Listing] = field(default_factory=list)
    page: int = 1
    total: int = 0
    total_pages: int = 0
    has_more: bool = False
    is_loading_initial: bool = False
    is_loading_more: bool = False
    active_filter_fingerprint: Optional[str] = None
    phase: FeedPhase = FeedPhase.IDLE
    location: Optional[Location] = None
    last_error: Optional[BaseException] = None

    @property
    def is_empty(self) -> bool:
        """No results and nothing loading: the "no listings found" state."""
        return not self.items and not self.is_loading_initial and self.phase is FeedPhase.READY

    @property
    def reached_end(self) -> bool:
        """Every page is loaded and there was at least one result."""
        return bool(self.items) and not self.has_more and self.phase is FeedPhase.READY
