"""Tests for render-time pin placement and the pin tracker."""

import pytest

from kitasuro.app.anchoring.overlay import (
    EventHub,
    PinPlacement,
    PinTracker,
    PlacementMode,
    resolve_pin,
)
from kitasuro.app.anchoring.position import Layout, LayoutNode, Point, Positioning, Rect
from kitasuro.app.models.comments import Anchor, StickyAnchor

SUMMARY_KEY = '[data-anchor="trip-summary"]'


def page(
    *,
    scroll: float = 0,
    sidebar: bool = True,
    sidebar_anchor: str | None = "trip-summary",
) -> Layout:
    """Container 1000x2000 at (100, 50 - scroll); the sticky sidebar stays at top 100."""
    root = LayoutNode(Rect(0, 0, 1400, 900), tag="body")
    container = root.add(LayoutNode(Rect(100, 50 - scroll, 1000, 2000), tag="main"))
    if sidebar:
        container.add(
            LayoutNode(
                Rect(800, 100, 300, 400),
                tag="aside",
                positioning=Positioning.sticky,
                data_anchor=sidebar_anchor,
            )
        )
    return Layout(root, container)


def sticky_anchor() -> Anchor:
    return Anchor(
        pos_x=85,
        pos_y=12.5,
        sticky=StickyAnchor(anchor_id=SUMMARY_KEY, pos_x=50, pos_y=50),
    )


def test_point_anchor_in_container() -> None:
    layout = page(sidebar=False)
    placement = resolve_pin(Anchor(pos_x=40, pos_y=60), layout, layout.container)

    assert placement.mode == PlacementMode.container
    assert placement.point == Point(500, 1250)
    assert placement.region is None


def test_container_pin_moves_with_scroll() -> None:
    layout = page(sidebar=False, scroll=500)
    placement = resolve_pin(Anchor(pos_x=40, pos_y=60), layout, layout.container)

    assert placement.point == Point(500, 750)


def test_region_anchor_pin_at_bottom_centre() -> None:
    layout = Layout(LayoutNode(Rect(0, 0, 1000, 2000)))
    anchor = Anchor(pos_x=10, pos_y=10, width=20, height=5)

    placement = resolve_pin(anchor, layout, layout.container)

    assert placement.region == Rect(100, 200, 200, 100)
    assert placement.point == Point(200, 300)


def test_sticky_pin_stays_with_sticky_element_while_scrolling() -> None:
    anchor = sticky_anchor()

    before = resolve_pin(anchor, page(), page().container)
    layout = page(scroll=500)
    after = resolve_pin(anchor, layout, layout.container)

    assert before.mode == after.mode == PlacementMode.sticky
    assert before.point == after.point == Point(950, 300)
    assert after.anchor_id == SUMMARY_KEY


def test_sticky_pin_falls_back_to_container_when_element_gone() -> None:
    layout = page(scroll=500, sidebar=False)

    placement = resolve_pin(sticky_anchor(), layout, layout.container)

    assert placement.mode == PlacementMode.container
    assert placement.point == Point(950, -200)
    assert placement.anchor_id is None


def test_sticky_pin_uses_hit_test_when_key_no_longer_matches() -> None:
    layout = page(sidebar_anchor=None)

    placement = resolve_pin(sticky_anchor(), layout, layout.container)

    assert placement.mode == PlacementMode.sticky
    assert placement.point == Point(950, 300)
    assert placement.anchor_id is not None
    assert placement.anchor_id.endswith("aside:nth-of-type(1)")


def test_sticky_pin_ignores_key_match_that_is_no_longer_sticky() -> None:
    root = LayoutNode(Rect(0, 0, 1400, 900), tag="body")
    container = root.add(LayoutNode(Rect(100, 50, 1000, 2000), tag="main"))
    container.add(LayoutNode(Rect(800, 100, 300, 400), tag="aside", data_anchor="trip-summary"))
    layout = Layout(root, container)

    placement = resolve_pin(sticky_anchor(), layout, container)

    assert placement.mode == PlacementMode.container


class TestPinTracker:
    """PinTracker listener lifecycle and publishing."""

    def test_mount_places_pin_and_registers_listeners(self) -> None:
        hub = EventHub()
        published: list[PinPlacement] = []

        tracker = PinTracker(sticky_anchor(), page, hub, published.append)
        tracker.mount()

        assert tracker.mounted
        assert hub.listener_count("scroll") == 1
        assert hub.listener_count("resize") == 1
        assert len(published) == 1
        assert published[0].mode == PlacementMode.sticky

    def test_unmount_removes_every_listener(self) -> None:
        hub = EventHub()

        with PinTracker(sticky_anchor(), page, hub, lambda _: None) as tracker:
            assert hub.listener_count() == 2

        assert not tracker.mounted
        assert hub.listener_count() == 0

    def test_mount_twice_registers_once(self) -> None:
        hub = EventHub()
        tracker = PinTracker(sticky_anchor(), page, hub, lambda _: None)

        tracker.mount()
        tracker.mount()

        assert hub.listener_count() == 2
        tracker.unmount()

    def test_publishes_only_on_change(self) -> None:
        hub = EventHub()
        published: list[PinPlacement] = []
        current = {"layout": page()}

        tracker = PinTracker(
            Anchor(pos_x=40, pos_y=60), lambda: current["layout"], hub, published.append
        )
        tracker.mount()

        hub.emit("scroll")
        assert len(published) == 1

        current["layout"] = page(scroll=500)
        hub.emit("scroll")
        assert len(published) == 2
        assert published[-1].point == Point(500, 750)

        tracker.unmount()

    def test_sticky_to_container_transition_on_resize(self) -> None:
        hub = EventHub()
        published: list[PinPlacement] = []
        current = {"layout": page(scroll=500)}

        with PinTracker(sticky_anchor(), lambda: current["layout"], hub, published.append):
            current["layout"] = page(scroll=500, sidebar=False)
            hub.emit("resize")

        assert [p.mode for p in published] == [PlacementMode.sticky, PlacementMode.container]

    def test_publishing_that_triggers_events_does_not_loop(self) -> None:
        hub = EventHub()
        scroll = {"offset": 0.0}
        published: list[PinPlacement] = []

        def on_change(placement: PinPlacement) -> None:
            published.append(placement)
            # Moving the pin scrolls the page, which fires another event
            scroll["offset"] += 10
            hub.emit("scroll")

        tracker = PinTracker(
            Anchor(pos_x=40, pos_y=60),
            lambda: page(scroll=scroll["offset"], sidebar=False),
            hub,
            on_change,
        )
        tracker.mount()
        assert len(published) == 1

        hub.emit("resize")
        assert len(published) == 2

        tracker.unmount()

    def test_no_refresh_after_unmount(self) -> None:
        hub = EventHub()
        published: list[PinPlacement] = []
        current = {"layout": page()}

        tracker = PinTracker(
            Anchor(pos_x=40, pos_y=60), lambda: current["layout"], hub, published.append
        )
        tracker.mount()
        tracker.unmount()

        current["layout"] = page(scroll=300)
        hub.emit("scroll")
        tracker.refresh()

        assert len(published) == 1


def test_region_keeps_container_relative_size_on_sticky() -> None:
    anchor = Anchor(
        pos_x=85,
        pos_y=12.5,
        width=10,
        height=5,
        sticky=StickyAnchor(anchor_id=SUMMARY_KEY, pos_x=50, pos_y=50),
    )
    layout = page(scroll=500)

    placement = resolve_pin(anchor, layout, layout.container)

    assert placement.region is not None
    assert placement.region.width == pytest.approx(100)
    assert placement.region.height == pytest.approx(100)
    assert placement.point == Point(1000, 400)
