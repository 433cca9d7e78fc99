"""
Connector layers: where computed paths end up.

Two strategies sit behind the same `update(connectors)` call:
- SvgConnectorLayer keeps one path slot per connection, updated in place
  (concept maps and flowcharts).
- CanvasConnectorLayer clears one shared canvas and strokes every path
  again (mind maps, where every curve starts at the root).
"""

from dataclasses import dataclass
from typing import Optional

from ..dom import CanvasElement
from ..geometry import Path


@dataclass(frozen=True)
class Connector:
    """A drawn connection for the current frame."""
    index: int
    source: str
    target: str
    path: Path

    @property
    def key(self) -> str:
        return f"line-{self.index}"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "from": self.source,
            "to": self.target,
            "path": self.path.to_dict(),
        }


class SvgConnectorLayer:
    """One slot per connection; a slot is None when the edge is not drawn."""

    def __init__(self, connection_count: int, marker_end: Optional[str] = None):
        self.marker_end = marker_end
        self.slots: dict[str, Optional[Path]] = {
            f"line-{i}": None for i in range(connection_count)
        }

    def update(self, connectors: list[Connector]) -> None:
        for key in self.slots:
            self.slots[key] = None
        for connector in connectors:
            self.slots[connector.key] = connector.path

    def clear(self) -> None:
        for key in self.slots:
            self.slots[key] = None

    @property
    def drawn(self) -> dict[str, Path]:
        return {k: v for k, v in self.slots.items() if v is not None}


class CanvasConnectorLayer:
    """Redraws every connector onto a single shared canvas."""

    def __init__(self, canvas: CanvasElement):
        self.canvas = canvas

    def update(self, connectors: list[Connector]) -> None:
        container = self.canvas.parent
        if container is not None and (
            self.canvas.width != container.width or self.canvas.height != container.height
        ):
            self.canvas.resize_buffer(container.width, container.height)
        self.canvas.clear()
        for connector in connectors:
            self.canvas.stroke(connector.path)

    def clear(self) -> None:
        self.canvas.clear()

    @property
    def drawn(self) -> dict[str, Path]:
        return {f"stroke-{i}": path for i, path in enumerate(self.canvas.stroked_paths)}
