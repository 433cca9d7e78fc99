"""
Redraw Scheduler - keeps connector geometry in step with the layout.

Connector paths go stale whenever nodes move or the container changes
size. Drag steps call `trigger()` directly; window resize and fullscreen
changes arrive through subscriptions the scheduler owns. Further sources
(zoom, font loading, ...) plug in through `add_trigger()`.
"""

import logging
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from .dom import Event, EventTarget, Subscription, Window, listen

logger = logging.getLogger(__name__)


class RedrawReason(str, Enum):
    MOUNT = "mount"
    RESIZE = "resize"
    FULLSCREEN = "fullscreen"
    DRAG = "drag"
    MANUAL = "manual"


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


# Signature of asyncio.AbstractEventLoop.call_later
CallLater = Callable[[float, Callable[[], None]], TimerHandle]

# The browser needs a moment to settle the layout after a fullscreen change
DEFAULT_FULLSCREEN_DELAY = 0.1


class RedrawScheduler:
    """
    Re-runs `redraw` whenever connector geometry may be stale.

    Fullscreen changes are deferred by `fullscreen_delay` seconds when a
    `call_later` function is supplied (e.g. `loop.call_later`), otherwise
    they redraw immediately. Pending timers die with `unsubscribe()`.
    """

    def __init__(
        self,
        redraw: Callable[[], None],
        window: Window,
        *,
        call_later: Optional[CallLater] = None,
        fullscreen_delay: float = DEFAULT_FULLSCREEN_DELAY,
    ):
        self._redraw = redraw
        self._window = window
        self._call_later = call_later
        self._fullscreen_delay = fullscreen_delay
        self._subscriptions: list[Subscription] = []
        self._triggers: list[Subscription] = []
        self._pending: list[TimerHandle] = []
        self.redraw_count = 0
        self.last_reason: Optional[RedrawReason] = None

    @property
    def is_subscribed(self) -> bool:
        return bool(self._subscriptions)

    def subscribe(self) -> None:
        """Listen for window resize and fullscreen changes."""
        if self._subscriptions:
            return
        self._subscriptions = [
            listen(self._window, "resize", self._on_resize),
            listen(self._window.document, "fullscreenchange", self._on_fullscreen_change),
        ]

    def add_trigger(self, target: EventTarget, event_type: str, reason: RedrawReason = RedrawReason.MANUAL) -> Subscription:
        """Redraw whenever `target` fires `event_type`. Removed by unsubscribe()."""
        subscription = listen(target, event_type, lambda event: self.trigger(reason))
        self._triggers.append(subscription)
        return subscription

    def unsubscribe(self) -> None:
        """Drop all listeners and cancel deferred redraws."""
        for subscription in self._subscriptions + self._triggers:
            subscription.unsubscribe()
        self._subscriptions = []
        self._triggers = []
        for handle in self._pending:
            handle.cancel()
        self._pending = []

    def trigger(self, reason: RedrawReason = RedrawReason.MANUAL) -> None:
        """Recompute connector geometry now."""
        self.redraw_count += 1
        self.last_reason = reason
        logger.debug("Redraw #%d (%s)", self.redraw_count, reason.value)
        self._redraw()

    def _on_resize(self, event: Event) -> None:
        self.trigger(RedrawReason.RESIZE)

    def _on_fullscreen_change(self, event: Event) -> None:
        if self._call_later is None:
            self.trigger(RedrawReason.FULLSCREEN)
            return

        handle: Optional[TimerHandle] = None

        def fire() -> None:
            if handle in self._pending:
                self._pending.remove(handle)
            self.trigger(RedrawReason.FULLSCREEN)

        handle = self._call_later(self._fullscreen_delay, fire)
        self._pending.append(handle)
