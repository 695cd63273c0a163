"""Viewport model and card-width breakpoints for the featured carousel."""

from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class Breakpoint:
    """Card geometry used while the container is at most ``max_width`` wide."""

    max_width: Optional[float]
    item_width: float
    gap: float

    @property
    def step(self) -> float:
        return self.item_width + self.gap


# narrow (mobile), medium (tablet), wide (desktop)
DEFAULT_BREAKPOINTS: tuple[Breakpoint, ...] = (
    Breakpoint(max_width=600, item_width=280, gap=16),
    Breakpoint(max_width=960, item_width=320, gap=16),
    Breakpoint(max_width=None, item_width=380, gap=24),
)


def breakpoint_for(container_width: float, breakpoints: Sequence[Breakpoint] = DEFAULT_BREAKPOINTS) -> Breakpoint:
    for bp in breakpoints:
        if bp.max_width is None or container_width <= bp.max_width:
            return bp
    return breakpoints[-1]


def step_amount(container_width: float, breakpoints: Sequence[Breakpoint] = DEFAULT_BREAKPOINTS) -> float:
    """One card plus the gap after it, for a manual advance/retreat."""
    return breakpoint_for(container_width, breakpoints).step


@dataclass
class ScrollViewport:
    """Horizontal scroll state exposed by the rendering layer.

    ``max_offset`` may be zero or negative when the content fits; positions
    are always clamped to ``[0, max(0, max_offset)]``.
    """

    content_width: float = 0.0
    client_width: float = 0.0
    position: float = 0.0

    @property
    def max_offset(self) -> float:
        return self.content_width - self.client_width

    def scroll_to(self, position: float) -> float:
        self.position = min(max(0.0, position), max(0.0, self.max_offset))
        return self.position

    def scroll_by(self, delta: float) -> float:
        return self.scroll_to(self.position + delta)

    def resize(self, content_width: Optional[float] = None, client_width: Optional[float] = None) -> None:
        if content_width is not None:
            self.content_width = content_width
        if client_width is not None:
            self.client_width = client_width
        self.scroll_to(self.position)
