"""Shared pytest fixtures for the diagram test suite.

These fixtures provide:
* A headless Window sized like a typical laptop viewport
* Sample payloads for each diagram variant, as the generation flows emit them
* A fake `call_later` that records deferred callbacks instead of sleeping
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

import pytest

from eduspark_core import Window


class FakeTimer:
    """Handle returned by FakeClock.call_later."""

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeClock:
    """Collects deferred callbacks; `run_pending()` fires the live ones."""

    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def run_pending(self) -> int:
        due, self.timers = self.timers, []
        fired = 0
        for timer in due:
            if not timer.cancelled:
                timer.callback()
                fired += 1
        return fired


# ---------------------------------------------------------------------------
# Environment fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def window() -> Window:
    return Window(1280, 900)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Sample diagrams
# ---------------------------------------------------------------------------


@pytest.fixture
def concept_map_data() -> Dict[str, Any]:
    return {
        "type": "concept-map-data",
        "title": "Photosynthesis",
        "nodes": [
            {"id": "p", "label": "Photosynthesis", "type": "principal",
             "position": {"top": 40, "left": 500}, "width": 200, "height": 60},
            {"id": "c1", "label": "Chlorophyll", "type": "concepto",
             "position": {"top": "300px", "left": "100px"}, "width": 120, "height": 40},
            {"id": "k1", "label": "absorbs", "type": "conector",
             "position": {"top": 200, "left": 300}, "width": 80, "height": 30},
        ],
        "connections": [
            {"from": "p", "to": "k1"},
            {"from": "k1", "to": "c1"},
        ],
    }


@pytest.fixture
def mind_map_data() -> Dict[str, Any]:
    return {
        "type": "mind-map-data",
        "title": "The Water Cycle",
        "branches": [
            {"id": "b1", "title": "Evaporation", "children": ["Sun heats water", "Vapour rises"],
             "position": {"top": "10%", "left": "10%"}},
            {"id": "b2", "title": "Condensation", "children": ["Clouds form"],
             "position": {"top": "10%", "left": "70%"}},
            {"id": "b3", "title": "Precipitation", "children": [],
             "position": {"top": "70%", "left": "40%"}},
        ],
    }


@pytest.fixture
def flowchart_data() -> Dict[str, Any]:
    """Two process steps stacked vertically: A above B."""
    return {
        "type": "flowchart-data",
        "title": "Two steps",
        "nodes": [
            {"id": "A", "label": "Start here", "type": "process",
             "position": {"top": 0, "left": 0}, "width": 100, "height": 50},
            {"id": "B", "label": "Then this", "type": "process",
             "position": {"top": 200, "left": 0}, "width": 100, "height": 50},
        ],
        "connections": [{"from": "A", "to": "B"}],
    }


@pytest.fixture
def decision_flowchart_data() -> Dict[str, Any]:
    return {
        "type": "flowchart-data",
        "title": "Is it raining?",
        "nodes": [
            {"id": "s", "label": "Start", "type": "start-end",
             "position": {"top": 20, "left": 500}},
            {"id": "d", "label": "Raining?", "type": "decision",
             "position": {"top": 150, "left": 500}},
            {"id": "u", "label": "Take umbrella", "type": "process",
             "position": {"top": 400, "left": 300}},
            {"id": "e", "label": "End", "type": "start-end",
             "position": {"top": 600, "left": 500}},
        ],
        "connections": [
            {"from": "s", "to": "d"},
            {"from": "d", "to": "u"},
            {"from": "u", "to": "e"},
            {"from": "d", "to": "e"},
        ],
    }
