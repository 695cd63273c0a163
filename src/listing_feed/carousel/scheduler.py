"""Auto-advance scheduler for the featured listings carousel.

The carousel creeps forward on a fixed tick, yields to the user on any
interaction, resumes after an idle window, and rewinds to the start with an
eased animation when it reaches the end.

All behavior lives in ``dispatch``: timer and frame callbacks only turn
into ``CarouselEvent`` values, so the whole state machine can be driven by
``VirtualTimers`` in tests.

    STOPPED --content--> STARTING --start delay--> ADVANCING
    ADVANCING --end reached--> REWIND_PENDING --grace--> REWINDING
    REWINDING --done--> STARTING --restart delay--> ADVANCING
    any running phase --interaction--> SUSPENDED --idle window--> ADVANCING
    any phase --no content / stop--> STOPPED
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Literal, Optional, Sequence

from listing_feed.carousel.layout import DEFAULT_BREAKPOINTS, Breakpoint, ScrollViewport, step_amount
from listing_feed.config.settings import (
    DEFAULT_CAROUSEL_IDLE_RESUME_SECONDS,
    DEFAULT_CAROUSEL_REWIND_GRACE_SECONDS,
    DEFAULT_CAROUSEL_REWIND_SECONDS,
    DEFAULT_CAROUSEL_STEP_PX,
    DEFAULT_CAROUSEL_TICK_SECONDS,
    CarouselSettings,
)
from listing_feed.timers import TimerHandle, Timers
from listing_feed.utils.logging_config import get_logger

logger = get_logger(__name__)


class CarouselPhase(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    ADVANCING = "advancing"
    SUSPENDED = "suspended"
    REWIND_PENDING = "rewind_pending"
    REWINDING = "rewinding"


class EventKind(str, Enum):
    START = "start"
    STOP = "stop"
    CONTENT_CHANGED = "content_changed"
    DELAY_ELAPSED = "delay_elapsed"
    TICK = "tick"
    GRACE_ELAPSED = "grace_elapsed"
    FRAME = "frame"
    INTERACTION = "interaction"
    IDLE_ELAPSED = "idle_elapsed"


@dataclass(frozen=True)
class CarouselEvent:
    kind: EventKind
    item_count: int = 0


@dataclass(frozen=True)
class ScrollSchedule:
    """Snapshot of the auto-advance cadence and suspension."""

    is_suspended: bool
    suspended_until: Optional[float]
    direction: Literal["forward"]
    step_size: float
    tick_interval: float


def ease_out_cubic(progress: float) -> float:
    return 1 - (1 - progress) ** 3


_RUNNING_PHASES = frozenset(
    {
        CarouselPhase.STARTING,
        CarouselPhase.ADVANCING,
        CarouselPhase.SUSPENDED,
        CarouselPhase.REWIND_PENDING,
        CarouselPhase.REWINDING,
    }
)

# Absorbs float error in frame timestamps so the last frame lands on 0
_FRAME_TOLERANCE = 1e-6


class AutoAdvanceScheduler:
    def __init__(
        self,
        viewport: ScrollViewport,
        timers: Timers,
        settings: Optional[CarouselSettings] = None,
        *,
        breakpoints: Sequence[Breakpoint] = DEFAULT_BREAKPOINTS,
        on_position: Optional[Callable[[float], None]] = None,
    ):
        self.viewport = viewport
        self._timers = timers
        self.settings = settings or CarouselSettings(
            tick_seconds=DEFAULT_CAROUSEL_TICK_SECONDS,
            step_px=DEFAULT_CAROUSEL_STEP_PX,
            idle_resume_seconds=DEFAULT_CAROUSEL_IDLE_RESUME_SECONDS,
            rewind_seconds=DEFAULT_CAROUSEL_REWIND_SECONDS,
            rewind_grace_seconds=DEFAULT_CAROUSEL_REWIND_GRACE_SECONDS,
        )
        self.breakpoints = tuple(breakpoints)
        self._on_position = on_position

        self.phase = CarouselPhase.STOPPED
        self.item_count = 0
        self.suspended_until: Optional[float] = None
        self._rewind_from = 0.0
        self._rewind_started_at = 0.0
        self._closed = False

        self._tick_handle: Optional[TimerHandle] = None
        self._delay_handle: Optional[TimerHandle] = None
        self._grace_handle: Optional[TimerHandle] = None
        self._frame_handle: Optional[TimerHandle] = None
        self._resume_handle: Optional[TimerHandle] = None

    # ------------------------------------------------------------------
    # View-facing API
    # ------------------------------------------------------------------

    @property
    def position(self) -> float:
        return self.viewport.position

    @property
    def can_scroll_left(self) -> bool:
        return self.viewport.position > self.settings.edge_margin_px

    @property
    def can_scroll_right(self) -> bool:
        return self.viewport.position < self.viewport.max_offset - self.settings.edge_margin_px

    @property
    def schedule(self) -> ScrollSchedule:
        return ScrollSchedule(
            is_suspended=self.phase is CarouselPhase.SUSPENDED,
            suspended_until=self.suspended_until,
            direction="forward",
            step_size=self.settings.step_px,
            tick_interval=self.settings.tick_seconds,
        )

    @property
    def has_pending_timers(self) -> bool:
        handles = (
            self._tick_handle,
            self._delay_handle,
            self._grace_handle,
            self._frame_handle,
            self._resume_handle,
        )
        return any(handle is not None and not handle.done for handle in handles)

    def set_item_count(self, count: int) -> None:
        """Tell the scheduler how many cards are rendered."""
        self.dispatch(CarouselEvent(EventKind.CONTENT_CHANGED, item_count=count))

    def start(self) -> None:
        """Begin advancing right away instead of after the start delay."""
        self.dispatch(CarouselEvent(EventKind.START))

    def stop(self) -> None:
        self.dispatch(CarouselEvent(EventKind.STOP))

    def notify_interaction(self) -> None:
        """Pointer enter, touch start or wheel on the carousel."""
        self.dispatch(CarouselEvent(EventKind.INTERACTION))

    def advance(self) -> float:
        """Manual "next" control: scroll one card forward."""
        return self._manual_step(1)

    def retreat(self) -> float:
        """Manual "previous" control: scroll one card back."""
        return self._manual_step(-1)

    def close(self) -> None:
        """Release every timer; later callbacks and events are ignored."""
        if self._closed:
            return
        self._release_handles()
        self.phase = CarouselPhase.STOPPED
        self.suspended_until = None
        self._closed = True

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def dispatch(self, event: CarouselEvent) -> None:
        if self._closed:
            return
        kind = event.kind

        if kind is EventKind.STOP:
            self._halt()
        elif kind is EventKind.CONTENT_CHANGED:
            self.item_count = max(0, event.item_count)
            if self.item_count == 0:
                self._halt()
            elif self.phase is CarouselPhase.STOPPED:
                self._enter_starting(self.settings.start_delay_seconds)
        elif kind is EventKind.START:
            if self.item_count > 0 and self.phase in (CarouselPhase.STOPPED, CarouselPhase.STARTING):
                self._enter_advancing()
        elif kind is EventKind.DELAY_ELAPSED:
            self._delay_handle = None
            if self.phase is CarouselPhase.STARTING:
                self._enter_advancing()
        elif kind is EventKind.TICK:
            if self.phase is CarouselPhase.ADVANCING:
                self._tick()
        elif kind is EventKind.GRACE_ELAPSED:
            self._grace_handle = None
            if self.phase is CarouselPhase.REWIND_PENDING:
                self._enter_rewinding()
        elif kind is EventKind.FRAME:
            self._frame_handle = None
            if self.phase is CarouselPhase.REWINDING:
                self._rewind_frame()
        elif kind is EventKind.INTERACTION:
            if self.phase in _RUNNING_PHASES:
                self._enter_suspended()
        elif kind is EventKind.IDLE_ELAPSED:
            self._resume_handle = None
            if self.phase is CarouselPhase.SUSPENDED:
                self.suspended_until = None
                if self.item_count > 0:
                    self._enter_advancing()
                else:
                    self._halt()

    def _emit(self, kind: EventKind) -> Callable[[], None]:
        return lambda: self.dispatch(CarouselEvent(kind))

    def _enter_starting(self, delay: float) -> None:
        self._cancel("_delay_handle")
        self.phase = CarouselPhase.STARTING
        self._delay_handle = self._timers.call_later(delay, self._emit(EventKind.DELAY_ELAPSED))

    def _enter_advancing(self) -> None:
        self._cancel("_delay_handle")
        self._cancel("_tick_handle")
        self.phase = CarouselPhase.ADVANCING
        self._tick_handle = self._timers.call_every(self.settings.tick_seconds, self._emit(EventKind.TICK))
        logger.debug("carousel.advancing", position=self.viewport.position)

    def _tick(self) -> None:
        max_offset = self.viewport.max_offset
        if max_offset <= 0:
            # Content fits the container; nothing to scroll
            return
        if self.viewport.position < max_offset - self.settings.end_epsilon_px:
            self._set_position(self.viewport.position + self.settings.step_px)
        if self.viewport.position >= max_offset - self.settings.end_epsilon_px:
            self._cancel("_tick_handle")
            self.phase = CarouselPhase.REWIND_PENDING
            self._grace_handle = self._timers.call_later(
                self.settings.rewind_grace_seconds, self._emit(EventKind.GRACE_ELAPSED)
            )
            logger.debug("carousel.end_reached", position=self.viewport.position)

    def _enter_rewinding(self) -> None:
        self.phase = CarouselPhase.REWINDING
        self._rewind_from = self.viewport.position
        self._rewind_started_at = self._timers.now()
        self._frame_handle = self._timers.request_frame(self._emit(EventKind.FRAME))

    def _rewind_frame(self) -> None:
        elapsed = self._timers.now() - self._rewind_started_at
        progress = min(elapsed / self.settings.rewind_seconds, 1.0)
        if progress >= 1.0 - _FRAME_TOLERANCE:
            self._set_position(0.0)
            logger.debug("carousel.rewound")
            self._enter_starting(self.settings.restart_delay_seconds)
            return
        self._set_position(self._rewind_from - self._rewind_from * ease_out_cubic(progress))
        self._frame_handle = self._timers.request_frame(self._emit(EventKind.FRAME))

    def _enter_suspended(self) -> None:
        for name in ("_tick_handle", "_delay_handle", "_grace_handle", "_frame_handle", "_resume_handle"):
            self._cancel(name)
        self.phase = CarouselPhase.SUSPENDED
        idle = self.settings.idle_resume_seconds
        self.suspended_until = self._timers.now() + idle
        self._resume_handle = self._timers.call_later(idle, self._emit(EventKind.IDLE_ELAPSED))

    def _halt(self) -> None:
        self._release_handles()
        self.phase = CarouselPhase.STOPPED
        self.suspended_until = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _manual_step(self, direction: int) -> float:
        self.notify_interaction()
        amount = step_amount(self.viewport.client_width, self.breakpoints)
        return self._set_position(self.viewport.position + direction * amount)

    def _set_position(self, position: float) -> float:
        new_position = self.viewport.scroll_to(position)
        if self._on_position is not None:
            self._on_position(new_position)
        return new_position

    def _cancel(self, name: str) -> None:
        handle: Optional[TimerHandle] = getattr(self, name)
        if handle is not None:
            handle.cancel()
            setattr(self, name, None)

    def _release_handles(self) -> None:
        for name in ("_tick_handle", "_delay_handle", "_grace_handle", "_frame_handle", "_resume_handle"):
            self._cancel(name)
