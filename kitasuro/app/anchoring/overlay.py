"""Anchoring overlay - re-resolve stored anchors to on-screen pin positions.

Resolution order for a stored anchor:
1. Container percentages to pixels against the container's current box.
2. Recorded sticky anchor found by key: place relative to its current box.
3. Key no longer found: hit-test the container point and use the sticky
   node there, if any.
4. Otherwise keep the container placement.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from kitasuro.app.anchoring.position import (
    Layout,
    LayoutNode,
    Point,
    Rect,
    anchor_key,
    to_pixels,
)
from kitasuro.app.models.comments import Anchor

logger = logging.getLogger(__name__)

VIEWPORT_EVENTS = ("scroll", "resize")


class PlacementMode(str, Enum):
    """Which box a pin is currently positioned against."""

    container = "container"
    sticky = "sticky"


@dataclass(frozen=True)
class PinPlacement:
    """Resolved on-screen position of a comment pin.

    point is where the pin marker goes; region is the highlighted box for
    region anchors.
    """

    point: Point
    mode: PlacementMode
    anchor_id: str | None = None
    region: Rect | None = None


def _sticky_target(anchor: Anchor, layout: Layout, fallback: Point) -> LayoutNode | None:
    if anchor.sticky is None:
        return None

    node = layout.find(anchor.sticky.anchor_id)
    if node is None:
        hit = layout.element_at(fallback)
        node = hit.sticky_ancestor() if hit is not None else None

    if node is None or not node.is_sticky:
        return None
    return node


def resolve_pin(anchor: Anchor, layout: Layout, container: LayoutNode) -> PinPlacement:
    """Compute the current pixel placement of a stored anchor."""
    box = container.rect
    origin = to_pixels(Point(anchor.pos_x, anchor.pos_y), box)
    mode = PlacementMode.container
    anchor_id = None

    sticky_node = _sticky_target(anchor, layout, origin)
    if sticky_node is not None and anchor.sticky is not None:
        origin = to_pixels(Point(anchor.sticky.pos_x, anchor.sticky.pos_y), sticky_node.rect)
        mode = PlacementMode.sticky
        anchor_id = anchor_key(sticky_node)

    if not anchor.is_region:
        return PinPlacement(point=origin, mode=mode, anchor_id=anchor_id)

    # Region sizes stay container-relative; the pin sits at the bottom centre
    width = (anchor.width or 0) / 100 * box.width
    height = (anchor.height or 0) / 100 * box.height
    return PinPlacement(
        point=Point(origin.x + width / 2, origin.y + height),
        mode=mode,
        anchor_id=anchor_id,
        region=Rect(left=origin.x, top=origin.y, width=width, height=height),
    )


class ViewportEvents(Protocol):
    """Source of scroll and resize notifications."""

    def add_listener(self, event: str, callback: Callable[[], None]) -> None:
        ...

    def remove_listener(self, event: str, callback: Callable[[], None]) -> None:
        ...


class EventHub:
    """Synchronous in-process ViewportEvents implementation."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable[[], None]]] = {}

    def add_listener(self, event: str, callback: Callable[[], None]) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def remove_listener(self, event: str, callback: Callable[[], None]) -> None:
        callbacks = self._listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: str) -> None:
        """Invoke every listener registered for event."""
        for callback in list(self._listeners.get(event, [])):
            callback()

    def listener_count(self, event: str | None = None) -> int:
        """Registered listeners for one event, or for all events."""
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(callbacks) for callbacks in self._listeners.values())


class PinTracker:
    """Keeps one pin placed while it is mounted.

    Use as a context manager, or call mount()/unmount() explicitly. The
    layout provider returns the current document snapshot on each tick.
    """

    def __init__(
        self,
        anchor: Anchor,
        layout_provider: Callable[[], Layout],
        events: ViewportEvents,
        on_change: Callable[[PinPlacement], None],
    ) -> None:
        self._anchor = anchor
        self._layout_provider = layout_provider
        self._events = events
        self._on_change = on_change
        self._placement: PinPlacement | None = None
        self._mounted = False
        self._resolving = False

    @property
    def placement(self) -> PinPlacement | None:
        return self._placement

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self) -> None:
        """Register viewport listeners and place the pin once."""
        if self._mounted:
            return
        for event in VIEWPORT_EVENTS:
            self._events.add_listener(event, self.refresh)
        self._mounted = True
        self.refresh()

    def unmount(self) -> None:
        """Remove viewport listeners."""
        if not self._mounted:
            return
        for event in VIEWPORT_EVENTS:
            self._events.remove_listener(event, self.refresh)
        self._mounted = False

    def refresh(self) -> None:
        """Re-resolve the placement and publish it if it changed."""
        # Publishing may cause the host to emit viewport events synchronously
        if self._resolving or not self._mounted:
            return

        self._resolving = True
        try:
            layout = self._layout_provider()
            placement = resolve_pin(self._anchor, layout, layout.container)
            if placement == self._placement:
                return

            previous = self._placement
            self._placement = placement
            if previous is not None and previous.mode != placement.mode:
                logger.debug(
                    "[pin_tracker] mode_change from=%s to=%s anchor_id=%s",
                    previous.mode.value,
                    placement.mode.value,
                    placement.anchor_id,
                )
            self._on_change(placement)
        finally:
            self._resolving = False

    def __enter__(self) -> "PinTracker":
        self.mount()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unmount()
