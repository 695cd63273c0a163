from listing_feed.carousel.layout import (
    DEFAULT_BREAKPOINTS,
    Breakpoint,
    ScrollViewport,
    breakpoint_for,
    step_amount,
)
from listing_feed.carousel.scheduler import (
    AutoAdvanceScheduler,
    CarouselEvent,
    CarouselPhase,
    EventKind,
    ScrollSchedule,
    ease_out_cubic,
)

__all__ = [
    "AutoAdvanceScheduler",
    "Breakpoint",
    "CarouselEvent",
    "CarouselPhase",
    "DEFAULT_BREAKPOINTS",
    "EventKind",
    "ScrollSchedule",
    "ScrollViewport",
    "breakpoint_for",
    "ease_out_cubic",
    "step_amount",
]
