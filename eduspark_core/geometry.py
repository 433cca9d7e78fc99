"""
Connector geometry.

Pure coordinate math used by the renderers:
- Anchors: points on an element's bounding box, relative to its container
- Straight lines (concept maps)
- Cubic bezier curves (mind maps)
- Elbow polylines with an arrowhead (flowcharts)

Nothing here mutates state; the same element positions always give the
same paths.
"""

import math
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class Point:
    """A 2D point. y grows downward, as on screen."""
    x: float
    y: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Rect:
    """An axis-aligned box in viewport coordinates."""
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

    def center(self) -> Point:
        return Point(self.left + self.width / 2, self.top + self.height / 2)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


class HasBoundingRect(Protocol):
    def bounding_rect(self) -> Optional[Rect]: ...


def _rects(element: HasBoundingRect, container: HasBoundingRect) -> Optional[tuple[Rect, Rect]]:
    """Both bounding rects, or None when either cannot be read this frame."""
    if element is None or container is None:
        return None
    element_rect = element.bounding_rect()
    container_rect = container.bounding_rect()
    if element_rect is None or container_rect is None or container_rect.is_empty():
        return None
    return element_rect, container_rect


def anchor_of(element: HasBoundingRect, container: HasBoundingRect) -> Optional[Point]:
    """
    Visual centre of `element` relative to the container's top-left.

    Returns None when the element or container is not mounted, or the
    container has no size; the caller skips the connector for this frame.
    """
    rects = _rects(element, container)
    if rects is None:
        return None
    element_rect, container_rect = rects
    center = element_rect.center()
    return Point(center.x - container_rect.left, center.y - container_rect.top)


def bottom_center_of(element: HasBoundingRect, container: HasBoundingRect) -> Optional[Point]:
    """Middle of the element's bottom edge, relative to the container."""
    rects = _rects(element, container)
    if rects is None:
        return None
    element_rect, container_rect = rects
    return Point(
        element_rect.left + element_rect.width / 2 - container_rect.left,
        element_rect.bottom - container_rect.top,
    )


def top_center_of(element: HasBoundingRect, container: HasBoundingRect) -> Optional[Point]:
    """Middle of the element's top edge, relative to the container."""
    rects = _rects(element, container)
    if rects is None:
        return None
    element_rect, container_rect = rects
    return Point(
        element_rect.left + element_rect.width / 2 - container_rect.left,
        element_rect.top - container_rect.top,
    )


def _fmt(value: float) -> str:
    """Compact number formatting for SVG path data."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


@dataclass(frozen=True)
class StraightPath:
    """A single line segment."""
    start: Point
    end: Point

    @property
    def d(self) -> str:
        return f"M{_fmt(self.start.x)},{_fmt(self.start.y)} L{_fmt(self.end.x)},{_fmt(self.end.y)}"

    def to_dict(self) -> dict:
        return {
            "kind": "line",
            "x1": self.start.x, "y1": self.start.y,
            "x2": self.end.x, "y2": self.end.y,
            "d": self.d,
        }


@dataclass(frozen=True)
class CubicBezier:
    """A cubic bezier curve from `start` to `end`."""
    start: Point
    control1: Point
    control2: Point
    end: Point

    @property
    def d(self) -> str:
        c1, c2 = self.control1, self.control2
        return (
            f"M{_fmt(self.start.x)},{_fmt(self.start.y)} "
            f"C{_fmt(c1.x)},{_fmt(c1.y)} {_fmt(c2.x)},{_fmt(c2.y)} "
            f"{_fmt(self.end.x)},{_fmt(self.end.y)}"
        )

    def point_at(self, t: float) -> Point:
        """Point on the curve for t in [0, 1]."""
        mt = 1 - t
        a = mt * mt * mt
        b = 3 * mt * mt * t
        c = 3 * mt * t * t
        e = t * t * t
        return Point(
            a * self.start.x + b * self.control1.x + c * self.control2.x + e * self.end.x,
            a * self.start.y + b * self.control1.y + c * self.control2.y + e * self.end.y,
        )

    def to_dict(self) -> dict:
        return {
            "kind": "bezier",
            "start": self.start.as_tuple(),
            "control1": self.control1.as_tuple(),
            "control2": self.control2.as_tuple(),
            "end": self.end.as_tuple(),
            "d": self.d,
        }


# Arrowhead marker size of the flowchart connectors
ARROW_LENGTH = 10.0
ARROW_WIDTH = 7.0


@dataclass(frozen=True)
class Arrowhead:
    """
    Triangle marker at the end of a connector.

    `angle` is in degrees from the +x axis with y pointing down, so an
    arrow pointing straight down has angle 90.
    """
    tip: Point
    angle: float
    length: float = ARROW_LENGTH
    width: float = ARROW_WIDTH

    def points(self) -> tuple[Point, Point, Point]:
        """Tip followed by the two base corners."""
        rad = math.radians(self.angle)
        ux, uy = math.cos(rad), math.sin(rad)
        # Perpendicular to the direction of travel
        px, py = -uy, ux
        base_x = self.tip.x - ux * self.length
        base_y = self.tip.y - uy * self.length
        half = self.width / 2
        return (
            self.tip,
            Point(base_x + px * half, base_y + py * half),
            Point(base_x - px * half, base_y - py * half),
        )


@dataclass(frozen=True)
class ElbowPath:
    """A polyline ending in an arrowhead."""
    points: tuple[Point, ...]
    arrow: Arrowhead

    @property
    def start(self) -> Point:
        return self.points[0]

    @property
    def end(self) -> Point:
        return self.points[-1]

    @property
    def d(self) -> str:
        first, *rest = self.points
        parts = [f"M{_fmt(first.x)},{_fmt(first.y)}"]
        parts.extend(f"L{_fmt(p.x)},{_fmt(p.y)}" for p in rest)
        return " ".join(parts)

    def to_dict(self) -> dict:
        return {
            "kind": "elbow",
            "points": [p.as_tuple() for p in self.points],
            "arrow": {
                "tip": self.arrow.tip.as_tuple(),
                "angle": self.arrow.angle,
                "points": [p.as_tuple() for p in self.arrow.points()],
            },
            "d": self.d,
        }


Path = StraightPath | CubicBezier | ElbowPath


def straight_path(p1: Point, p2: Point) -> StraightPath:
    """Straight connector between two anchors."""
    return StraightPath(p1, p2)


def curved_path(p1: Point, p2: Point) -> CubicBezier:
    """
    Organic branch curve from `p1` to `p2`.

    The first control point sits at (p1.x, p2.y) and the second at
    (p2.x, p1.y), so the curve is symmetric about its midpoint.
    """
    return CubicBezier(p1, Point(p1.x, p2.y), Point(p2.x, p1.y), p2)


def _angle(a: Point, b: Point) -> Optional[float]:
    dx, dy = b.x - a.x, b.y - a.y
    if dx == 0 and dy == 0:
        return None
    return math.degrees(math.atan2(dy, dx))


def elbow_path(p1: Point, p2: Point) -> ElbowPath:
    """
    Flowchart connector from a source's bottom to a target's top.

    Drops vertically from `p1` for half the vertical distance, then runs
    straight to `p2`. When the target is not below the source there is no
    drop and the connector is a single segment. The arrowhead at `p2` is
    oriented along the final segment.
    """
    drop = max(0.0, (p2.y - p1.y) / 2)
    knee = Point(p1.x, p1.y + drop)

    points = [p1]
    if knee != p1 and knee != p2:
        points.append(knee)
    points.append(p2)

    angle = _angle(points[-2], p2) if len(points) > 1 else None
    if angle is None:
        # Zero-length connector: keep pointing down
        angle = 90.0
    return ElbowPath(tuple(points), Arrowhead(p2, angle))
