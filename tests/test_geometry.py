"""
Tests for connector geometry and layout helpers.
"""

import math

import pytest

from eduspark_core.dom import Container, Element, Window
from eduspark_core.geometry import (
    Point,
    Rect,
    anchor_of,
    bottom_center_of,
    curved_path,
    elbow_path,
    straight_path,
    top_center_of,
)
from eduspark_core.layout import Length, clamp_box, estimate_text_box, parse_length, to_percent, wrap_lines


def _mounted(width=1200, height=800, origin=Point(0, 0)):
    window = Window()
    container = Container("c", width, height, origin=origin)
    window.document.mount(container)
    return container


class TestAnchors:
    """Anchor points relative to the container"""

    def test_anchor_is_centre_relative_to_container(self):
        container = _mounted(origin=Point(40, 100))
        element = container.append_child(
            Element("n", 100, 50, left=Length.px(200), top=Length.px(300))
        )
        assert anchor_of(element, container) == Point(250, 325)

    def test_anchor_of_rotated_element_is_unchanged(self):
        container = _mounted()
        element = container.append_child(
            Element("d", 128, 128, left=Length.px(100), top=Length.px(100), rotation=45)
        )
        anchor = anchor_of(element, container)
        assert anchor.x == pytest.approx(164)
        assert anchor.y == pytest.approx(164)
        # The visual box grows to the diamond's extent
        assert element.bounding_rect().width == pytest.approx(128 * math.sqrt(2))

    def test_edge_anchors(self):
        container = _mounted()
        element = container.append_child(Element("n", 100, 50))
        assert bottom_center_of(element, container) == Point(50, 50)
        assert top_center_of(element, container) == Point(50, 0)

    def test_unmounted_element_has_no_anchor(self):
        container = _mounted()
        loose = Element("loose", 10, 10)
        assert anchor_of(loose, container) is None
        assert anchor_of(None, container) is None

    def test_empty_container_has_no_anchor(self):
        container = _mounted(width=0)
        element = container.append_child(Element("n", 10, 10))
        assert anchor_of(element, container) is None

    def test_unmounted_container_has_no_anchor(self):
        container = Container("detached", 100, 100)
        element = container.append_child(Element("n", 10, 10))
        assert anchor_of(element, container) is None


class TestPaths:
    """Path builders"""

    def test_straight_path(self):
        path = straight_path(Point(50, 50), Point(50, 200))
        assert path.d == "M50,50 L50,200"
        assert path.to_dict()["kind"] == "line"

    def test_curve_control_points(self):
        curve = curved_path(Point(10, 20), Point(110, 220))
        assert curve.control1 == Point(10, 220)
        assert curve.control2 == Point(110, 20)
        assert curve.point_at(0) == Point(10, 20)
        assert curve.point_at(1) == Point(110, 220)
        # Symmetric control points put the midpoint halfway
        mid = curve.point_at(0.5)
        assert mid.x == pytest.approx(60)
        assert mid.y == pytest.approx(120)

    def test_elbow_drops_then_runs(self):
        path = elbow_path(Point(350, 50), Point(50, 200))
        assert path.points == (Point(350, 50), Point(350, 125), Point(50, 200))
        assert path.start == Point(350, 50)
        assert path.end == Point(50, 200)
        assert path.arrow.tip == Point(50, 200)

    def test_elbow_straight_down_points_arrow_down(self):
        path = elbow_path(Point(50, 50), Point(50, 200))
        assert path.start == Point(50, 50)
        assert path.end == Point(50, 200)
        assert path.arrow.angle == pytest.approx(90)
        tip, left, right = path.arrow.points()
        assert tip == Point(50, 200)
        assert left.y == pytest.approx(190)
        assert right.y == pytest.approx(190)
        assert abs(left.x - right.x) == pytest.approx(7)

    def test_elbow_to_target_above_is_single_segment(self):
        path = elbow_path(Point(100, 300), Point(400, 100))
        assert path.points == (Point(100, 300), Point(400, 100))
        assert path.d == "M100,300 L400,100"

    def test_zero_length_elbow_keeps_pointing_down(self):
        path = elbow_path(Point(5, 5), Point(5, 5))
        assert path.arrow.angle == 90.0
        assert path.d == "M5,5 L5,5"

    def test_fractional_coordinates_are_compact(self):
        assert straight_path(Point(0.5, 1.25), Point(2, 3)).d == "M0.5,1.25 L2,3"


class TestLayout:
    """Lengths, sizes and clamping"""

    @pytest.mark.parametrize("raw,expected", [
        (120, Length(120.0, "px")),
        ("120", Length(120.0, "px")),
        ("120px", Length(120.0, "px")),
        ("35%", Length(35.0, "%")),
        (" -4.5px ", Length(-4.5, "px")),
    ])
    def test_parse_length(self, raw, expected):
        assert parse_length(raw) == expected

    @pytest.mark.parametrize("raw", ["wide", "12em", True, ""])
    def test_parse_length_rejects(self, raw):
        with pytest.raises(ValueError):
            parse_length(raw)

    def test_resolve_and_str(self):
        assert Length.percent(25).resolve(800) == 200
        assert Length.px(30).resolve(800) == 30
        assert str(Length.percent(25)) == "25%"
        assert str(Length.px(12.5)) == "12.5px"
        assert to_percent(300, 1200) == Length.percent(25)
        assert to_percent(10, 0) == Length.percent(0)

    def test_clamp_box_keeps_box_inside(self):
        assert clamp_box(-50, -10, 100, 50, 1200, 800) == (0, 0)
        assert clamp_box(5000, 5000, 100, 50, 1200, 800) == (1100, 750)
        assert clamp_box(300, 200, 100, 50, 1200, 800) == (300, 200)

    def test_box_larger_than_container_pins_to_origin(self):
        assert clamp_box(40, 40, 500, 500, 300, 300) == (0, 0)

    def test_wrap_and_estimate(self):
        assert wrap_lines("") == [""]
        assert wrap_lines("one two three", max_chars=7) == ["one two", "three"]
        width, height = estimate_text_box("Hi", padding_x=10, padding_y=5, min_width=80)
        assert width == 80
        assert height == 30

    def test_rect_helpers(self):
        rect = Rect(10, 20, 100, 50)
        assert (rect.right, rect.bottom) == (110, 70)
        assert rect.center() == Point(60, 45)
        assert Rect(0, 0, 0, 10).is_empty()
