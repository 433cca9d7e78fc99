"""
Layout helpers for diagram nodes.

Provides the small pieces of box layout the renderers need without a
browser:
- Length: CSS-like px / % values, resolved against the container
- Node size estimation from label text
- Clamping a dragged box inside its container
"""

import math
import re
from dataclasses import dataclass
from typing import Literal, Union


# Default canvas for concept maps and flowcharts
DEFAULT_CANVAS_WIDTH = 1200
DEFAULT_CANVAS_HEIGHT = 800

# Text metrics used for size estimation (text-sm, ~14px font)
CHAR_WIDTH = 7.5
LINE_HEIGHT = 20
MAX_LINE_CHARS = 28

_LENGTH_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(px|%)?\s*$")


@dataclass(frozen=True)
class Length:
    """A CSS length: pixels or a percentage of the container extent."""
    value: float
    unit: Literal["px", "%"] = "px"

    @classmethod
    def px(cls, value: float) -> "Length":
        return cls(float(value), "px")

    @classmethod
    def percent(cls, value: float) -> "Length":
        return cls(float(value), "%")

    def resolve(self, extent: float) -> float:
        """Pixel value, percentages taken of `extent`."""
        if self.unit == "%":
            return extent * self.value / 100
        return self.value

    def __str__(self) -> str:
        number = int(self.value) if float(self.value).is_integer() else round(self.value, 4)
        return f"{number}{self.unit}"


def parse_length(raw: Union[float, int, str, Length]) -> Length:
    """
    Parse a length as written by the generation flows.

    Accepts numbers (pixels), "120", "120px" and "35%".

    Raises:
        ValueError: for anything else
    """
    if isinstance(raw, Length):
        return raw
    if isinstance(raw, bool):
        raise ValueError(f"Invalid length: {raw!r}")
    if isinstance(raw, (int, float)):
        return Length.px(raw)
    match = _LENGTH_RE.match(str(raw))
    if not match:
        raise ValueError(f"Invalid length: {raw!r}")
    value, unit = match.groups()
    return Length(float(value), unit or "px")


def to_percent(pixels: float, extent: float) -> Length:
    """Express a pixel offset as a percentage of `extent`."""
    if extent <= 0:
        return Length.percent(0)
    return Length.percent(pixels / extent * 100)


def wrap_lines(text: str, max_chars: int = MAX_LINE_CHARS) -> list[str]:
    """Greedy word wrap used for size estimation and SVG labels."""
    words = text.split()
    if not words:
        return [""]
    lines: list[str] = []
    current = words[0]
    for word in words[1:]:
        if len(current) + 1 + len(word) <= max_chars:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def estimate_text_box(
    text: str,
    padding_x: float = 16,
    padding_y: float = 8,
    min_width: float = 0,
    min_height: float = 0,
) -> tuple[float, float]:
    """
    Approximate the offset size of a text node.

    Args:
        text: Label text
        padding_x: Horizontal padding on each side
        padding_y: Vertical padding on each side
        min_width: Lower bound for the width
        min_height: Lower bound for the height

    Returns:
        (width, height) in pixels
    """
    lines = wrap_lines(text)
    longest = max(len(line) for line in lines)
    width = math.ceil(longest * CHAR_WIDTH) + 2 * padding_x
    height = len(lines) * LINE_HEIGHT + 2 * padding_y
    return max(width, min_width), max(height, min_height)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp `value` into [low, high]; `low` wins when the range is empty."""
    return max(low, min(value, high))


def clamp_box(
    left: float,
    top: float,
    width: float,
    height: float,
    container_width: float,
    container_height: float,
) -> tuple[float, float]:
    """
    Keep a box of `width` x `height` inside the container.

    Returns the clamped (left, top). A box larger than the container is
    pinned to 0 on that axis.
    """
    return (
        clamp(left, 0, container_width - width),
        clamp(top, 0, container_height - height),
    )
