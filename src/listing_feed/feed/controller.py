"""Incremental feed controller: paginated listing search with infinite scroll.

Two independent triggers drive the feed:

- filter or location changes reset the list and load page 1;
- scroll proximity (sentinel visibility or a scroll-position poll) loads the
  next page.

``load_more`` is the only entry point for pagination and refuses to start
while any load is pending, so at most one "more" fetch runs at a time.
Resets bump a generation counter; responses that belong to an older
generation are dropped instead of being merged into the new result set.

All methods must be called from the event loop that runs the fetches.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from listing_feed.clients.listing_api import ListingSource
from listing_feed.errors import ContractViolationError
from listing_feed.feed.fingerprint import filter_fingerprint
from listing_feed.feed.state import FeedPhase, FeedState, Location
from listing_feed.schemas.listings import Listing, SearchFilters, SearchPage, TransactionType
from listing_feed.timers import TimerHandle, Timers
from listing_feed.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 12
DEFAULT_NEAR_BOTTOM_PX = 300.0
DEFAULT_SCROLL_SETTLE_SECONDS = 0.5
DEFAULT_CONTAINER_ID = "listing-results"


def apply_transaction_filter(
    items: list[Listing], transaction: Optional[TransactionType]
) -> list[Listing]:
    """Keep only listings offered for the requested transaction."""
    if transaction is TransactionType.SALE:
        return [item for item in items if item.has_sale_price]
    if transaction is TransactionType.RENT:
        return [item for item in items if item.has_rent_price]
    return list(items)


class IncrementalFeedController:
    def __init__(
        self,
        source: ListingSource,
        timers: Timers,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        near_bottom_px: float = DEFAULT_NEAR_BOTTOM_PX,
        scroll_settle_seconds: float = DEFAULT_SCROLL_SETTLE_SECONDS,
        strict_contracts: bool = True,
        container_id: str = DEFAULT_CONTAINER_ID,
        on_change: Optional[Callable[[FeedState], None]] = None,
        on_scroll_into_view: Optional[Callable[[str], None]] = None,
    ):
        self._source = source
        self._timers = timers
        self.page_size = page_size
        self.near_bottom_px = near_bottom_px
        self.scroll_settle_seconds = scroll_settle_seconds
        self.strict_contracts = strict_contracts
        self.container_id = container_id
        self._on_change = on_change
        self._on_scroll_into_view = on_scroll_into_view

        self.state = FeedState()
        self._filters: Optional[SearchFilters] = None
        self._location: Optional[Location] = None
        self._generation = 0
        self._initial_task: Optional[asyncio.Task] = None
        self._more_task: Optional[asyncio.Task] = None
        self._scroll_pending = False
        self._scroll_handle: Optional[TimerHandle] = None
        self._alive = True

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    @property
    def filters(self) -> Optional[SearchFilters]:
        return self._filters

    @property
    def scroll_request_pending(self) -> bool:
        return self._scroll_pending or self._scroll_handle is not None

    def set_location(self, city: Optional[str], state: Optional[str] = None) -> Optional[asyncio.Task]:
        """Scope the feed to a location; a change replaces the feed wholesale."""
        location = Location(city, state) if city else None
        if not self._alive or location == self._location:
            return None
        self._location = location
        logger.info("feed.location_changed", city=city, state=state)
        return self._reset_and_load(self.state.active_filter_fingerprint)

    def set_filters(
        self, filters: Optional[SearchFilters] = None, *, force: bool = False
    ) -> Optional[asyncio.Task]:
        """
        Apply new search filters.

        Value-equal filters are a no-op so re-renders never trigger duplicate
        loads. ``force=True`` reloads anyway ("search again").

        Returns:
            The page-1 fetch task, or None when nothing was started.
        """
        if not self._alive:
            return None
        filters = filters if filters is not None else SearchFilters()
        fingerprint = filter_fingerprint(filters)
        if (
            not force
            and self._filters is not None
            and fingerprint == self.state.active_filter_fingerprint
        ):
            logger.debug("feed.filters_unchanged", fingerprint=fingerprint)
            return None

        self._filters = filters
        self._scroll_pending = True
        logger.info("feed.filters_changed", fingerprint=fingerprint, force=force)
        return self._reset_and_load(fingerprint)

    def load_more(self) -> Optional[asyncio.Task]:
        """Fetch the next page unless a load is pending or nothing is left."""
        state = self.state
        if (
            not self._alive
            or self._location is None
            or not state.has_more
            or state.is_loading_more
            or state.is_loading_initial
        ):
            return None

        state.is_loading_more = True
        state.phase = FeedPhase.LOADING_MORE
        self._notify()
        self._more_task = asyncio.ensure_future(
            self._load_page(state.page + 1, self._generation, append=True)
        )
        return self._more_task

    def on_sentinel_visible(self, is_visible: bool = True) -> Optional[asyncio.Task]:
        """Sentinel element near the end of the grid entered the viewport."""
        if not is_visible:
            return None
        return self.load_more()

    def on_scroll(
        self, scroll_top: float, viewport_height: float, content_height: float
    ) -> Optional[asyncio.Task]:
        """Coarse scroll poll: load more when close enough to the bottom."""
        distance = content_height - (scroll_top + viewport_height)
        if distance > self.near_bottom_px:
            return None
        return self.load_more()

    def close(self) -> None:
        """Stop every pending fetch and timer; the controller is unusable afterwards."""
        if not self._alive:
            return
        self._alive = False
        self._generation += 1
        for task in (self._initial_task, self._more_task):
            if task is not None and not task.done():
                task.cancel()
        self._initial_task = None
        self._more_task = None
        self._cancel_scroll_request()
        self._scroll_pending = False
        self.state = FeedState()
        logger.debug("feed.closed")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _effective_filters(self) -> SearchFilters:
        base = self._filters if self._filters is not None else SearchFilters()
        location = self._location
        return base.model_copy(
            update={
                "city": location.city if location else None,
                "state": location.state if location else None,
                "page": None,
                "limit": None,
            }
        )

    def _reset_and_load(self, fingerprint: Optional[str]) -> Optional[asyncio.Task]:
        self._generation += 1
        self._cancel_scroll_request()
        self._more_task = None

        self.state = FeedState(
            active_filter_fingerprint=fingerprint,
            location=self._location,
        )
        if self._location is None:
            # Nothing to search without a location; the grid stays hidden
            self._initial_task = None
            self._notify()
            return None

        self.state.is_loading_initial = True
        self.state.phase = FeedPhase.LOADING_INITIAL
        self._notify()
        self._initial_task = asyncio.ensure_future(
            self._load_page(1, self._generation, append=False)
        )
        return self._initial_task

    def _is_current(self, generation: int) -> bool:
        return self._alive and generation == self._generation

    async def _load_page(self, page: int, generation: int, append: bool) -> None:
        filters = self._effective_filters()
        try:
            result = await self._source.search(filters, page, self.page_size)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self._is_current(generation):
                logger.debug("feed.stale_failure_discarded", page=page)
                return
            self._apply_failure(e, page, append)
            if isinstance(e, ContractViolationError) and self.strict_contracts:
                raise
            return

        if not self._is_current(generation):
            logger.debug("feed.stale_response_discarded", page=page, generation=generation)
            return
        self._apply_page(result, filters.search, append)

    def _apply_page(
        self, result: SearchPage, transaction: Optional[TransactionType], append: bool
    ) -> None:
        state = self.state
        received = apply_transaction_filter(result.items, transaction)
        dropped = len(result.items) - len(received)

        seen = {item.id for item in state.items} if append else set()
        fresh: list[Listing] = []
        for item in received:
            if item.id in seen:
                continue
            seen.add(item.id)
            fresh.append(item)

        state.items = state.items + fresh if append else fresh
        state.total = max(result.total - dropped, len(state.items))
        state.total_pages = result.total_pages
        state.page = result.page
        state.has_more = result.page < result.total_pages and len(received) > 0
        state.last_error = None
        self._finish(append)

        logger.info(
            "feed.page_loaded",
            page=result.page,
            received=len(result.items),
            appended=len(fresh),
            total=state.total,
            has_more=state.has_more,
        )

    def _apply_failure(self, error: Exception, page: int, append: bool) -> None:
        state = self.state
        if not append:
            state.items = []
            state.total = 0
            state.total_pages = 0
            state.has_more = False
        state.last_error = error
        # Logged, never surfaced: the grid shows its regular empty state
        logger.warning("feed.load_failed", page=page, append=append, exc_info=error)
        self._finish(append)

    def _finish(self, append: bool) -> None:
        state = self.state
        if append:
            state.is_loading_more = False
            self._more_task = None
        else:
            state.is_loading_initial = False
            self._initial_task = None
        state.phase = FeedPhase.READY
        self._notify()
        if not append:
            self._schedule_scroll_request()

    # ------------------------------------------------------------------
    # Scroll-into-view request
    # ------------------------------------------------------------------

    def _schedule_scroll_request(self) -> None:
        if not self._scroll_pending:
            return
        self._scroll_pending = False
        self._cancel_scroll_request()
        self._scroll_handle = self._timers.call_later(
            self.scroll_settle_seconds, self._fire_scroll_request
        )

    def _fire_scroll_request(self) -> None:
        self._scroll_handle = None
        if not self._alive:
            return
        logger.debug("feed.scroll_into_view", container_id=self.container_id)
        if self._on_scroll_into_view is not None:
            self._on_scroll_into_view(self.container_id)

    def _cancel_scroll_request(self) -> None:
        if self._scroll_handle is not None:
            self._scroll_handle.cancel()
            self._scroll_handle = None

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.state)
