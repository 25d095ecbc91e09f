"""Position model - pointer pixels to scroll-independent anchor coordinates.

Coordinates are stored as percentages of the proposal document container so
they survive container resizes. Pins on sticky elements (headers that stay
put while content scrolls under them) are additionally recorded relative to
the sticky element itself, keyed by a stable anchor id.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from kitasuro.app.models.comments import Anchor, StickyAnchor

DEFAULT_DRAG_THRESHOLD_PCT = 0.5


@dataclass(frozen=True)
class Point:
    """Point in pixels or percentages, depending on context."""

    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Bounding box in viewport pixels."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def contains(self, point: Point) -> bool:
        """Whether the point lies inside the box (edges included)."""
        return self.left <= point.x <= self.right and self.top <= point.y <= self.bottom


class Positioning(str, Enum):
    """CSS positioning mode relevant to anchoring."""

    static = "static"
    sticky = "sticky"


@dataclass(eq=False)
class LayoutNode:
    """Box of one element in a laid-out document snapshot."""

    rect: Rect
    tag: str = "div"
    positioning: Positioning = Positioning.static
    element_id: str | None = None
    data_anchor: str | None = None
    classes: tuple[str, ...] = ()
    z_index: int = 0
    children: list["LayoutNode"] = field(default_factory=list)
    parent: "LayoutNode | None" = field(default=None, repr=False)

    def add(self, child: "LayoutNode") -> "LayoutNode":
        """Append a child node and return it."""
        child.parent = self
        self.children.append(child)
        return child

    @property
    def is_sticky(self) -> bool:
        return self.positioning == Positioning.sticky

    def sticky_ancestor(self) -> "LayoutNode | None":
        """Closest sticky node among self and its ancestors."""
        node: LayoutNode | None = self
        while node is not None:
            if node.is_sticky:
                return node
            node = node.parent
        return None

    def nth_of_type(self) -> int:
        """1-based index among siblings with the same tag."""
        if self.parent is None:
            return 1
        same_tag = [c for c in self.parent.children if c.tag == self.tag]
        return same_tag.index(self) + 1

    def iter_tree(self) -> Iterator["LayoutNode"]:
        """Depth-first iteration over this node and its descendants."""
        yield self
        for child in self.children:
            yield from child.iter_tree()


def anchor_key(node: LayoutNode) -> str:
    """Key identifying a node across renders.

    Priority: element id, then data-anchor id, then a structural path of
    tag, classes and sibling index up to the root. Only the first two are
    stable across layout changes.
    """
    if node.element_id:
        return f"#{node.element_id}"
    if node.data_anchor:
        return f'[data-anchor="{node.data_anchor}"]'

    segments: list[str] = []
    current: LayoutNode | None = node
    while current is not None:
        segment = current.tag + "".join(f".{cls}" for cls in current.classes)
        segments.append(f"{segment}:nth-of-type({current.nth_of_type()})")
        current = current.parent
    return " > ".join(reversed(segments))


class Layout:
    """Snapshot of the rendered proposal document.

    The container is the node pins are positioned against; it defaults to
    the root.
    """

    def __init__(self, root: LayoutNode, container: LayoutNode | None = None) -> None:
        self.root = root
        self.container = container or root

    def element_at(self, point: Point) -> LayoutNode | None:
        """Topmost node under a viewport point, or None outside the root."""
        return _hit_test(self.root, point)

    def find(self, key: str) -> LayoutNode | None:
        """Node whose anchor key equals key."""
        for node in self.root.iter_tree():
            if anchor_key(node) == key:
                return node
        return None


def _hit_test(node: LayoutNode, point: Point) -> LayoutNode | None:
    if not node.rect.contains(point):
        return None

    # Higher z-index paints on top; among equals the later sibling does
    ordered = sorted(
        enumerate(node.children), key=lambda item: (item[1].z_index, item[0]), reverse=True
    )
    for _, child in ordered:
        hit = _hit_test(child, point)
        if hit is not None:
            return hit
    return node


def to_percent(point: Point, rect: Rect) -> Point:
    """Pixel point to percentages of rect.

    Raises:
        ValueError: If rect has zero width or height
    """
    if rect.width == 0 or rect.height == 0:
        raise ValueError("Cannot express a point relative to a zero-size box")
    return Point(
        x=(point.x - rect.left) / rect.width * 100,
        y=(point.y - rect.top) / rect.height * 100,
    )


def to_pixels(point: Point, rect: Rect) -> Point:
    """Percentages of rect back to a pixel point."""
    return Point(
        x=rect.left + point.x / 100 * rect.width,
        y=rect.top + point.y / 100 * rect.height,
    )


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, value))


def clamp_percent(point: Point) -> Point:
    """Clamp both coordinates into 0..100."""
    return Point(x=_clamp(point.x), y=_clamp(point.y))


def classify_selection(
    start: Point, end: Point, threshold: float = DEFAULT_DRAG_THRESHOLD_PCT
) -> Anchor:
    """Turn a pointer down/up pair (in percentages) into an anchor.

    A displacement below threshold on both axes is a click: point anchor at
    the start point. Anything else is a drag: region anchor spanning both
    points.
    """
    dx = abs(end.x - start.x)
    dy = abs(end.y - start.y)

    if dx < threshold and dy < threshold:
        return Anchor(pos_x=start.x, pos_y=start.y)

    return Anchor(
        pos_x=min(start.x, end.x),
        pos_y=min(start.y, end.y),
        width=dx,
        height=dy,
    )


def capture_anchor(
    layout: Layout,
    container: LayoutNode,
    down: Point,
    up: Point,
    threshold: float = DEFAULT_DRAG_THRESHOLD_PCT,
) -> Anchor:
    """Build the anchor for a pointer down/up pair given in viewport pixels.

    When the element under the pointer-down point sits in a sticky node and
    the selection origin lies inside that node, the anchor also records the
    origin relative to it. A selection reaching outside the node stays
    container-relative only.
    """
    box = container.rect

    start = clamp_percent(to_percent(down, box))
    end = clamp_percent(to_percent(up, box))
    anchor = classify_selection(start, end, threshold)

    hit = layout.element_at(down)
    sticky_node = hit.sticky_ancestor() if hit is not None else None
    if sticky_node is None:
        return anchor

    origin_px = to_pixels(Point(anchor.pos_x, anchor.pos_y), box)
    if not sticky_node.rect.contains(origin_px):
        return anchor

    relative = clamp_percent(to_percent(origin_px, sticky_node.rect))
    sticky = StickyAnchor(anchor_id=anchor_key(sticky_node), pos_x=relative.x, pos_y=relative.y)
    return anchor.model_copy(update={"sticky": sticky})
