"""Countdown scheduling for rest periods.

The engine never sleeps or spawns threads. Time enters through a TickSource
supplied by the host: tests use ManualTickSource and call tick() directly,
the HTTP service uses AsyncioTickSource on its event loop.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL_MS = 1000

TickCallback = Callable[[], None]


class TickSource(ABC):
    """Host timer facility that invokes a callback at a fixed interval.

    At most one callback is registered at a time; registering replaces any
    previous one.
    """

    @abstractmethod
    def register_tick(self, callback: TickCallback, interval_ms: int) -> None:
        ...

    @abstractmethod
    def cancel_tick(self) -> None:
        """Stop invoking the callback. Safe to call when nothing is registered."""
        ...


class ManualTickSource(TickSource):
    """Tick source driven explicitly by the caller."""

    def __init__(self):
        self._callback: Optional[TickCallback] = None
        self.interval_ms: Optional[int] = None

    @property
    def is_registered(self) -> bool:
        return self._callback is not None

    def register_tick(self, callback: TickCallback, interval_ms: int) -> None:
        self._callback = callback
        self.interval_ms = interval_ms

    def cancel_tick(self) -> None:
        self._callback = None
        self.interval_ms = None

    def tick(self, count: int = 1) -> int:
        """Fire the registered callback up to ``count`` times.

        Returns how many ticks were delivered; stops early once nothing is
        registered.
        """
        delivered = 0
        for _ in range(count):
            if self._callback is None:
                break
            self._callback()
            delivered += 1
        return delivered


class AsyncioTickSource(TickSource):
    """Tick source backed by ``loop.call_later`` on an asyncio event loop.

    Must be used from the loop's own thread; the engine relies on ticks and
    user operations being serialized on that loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    def register_tick(self, callback: TickCallback, interval_ms: int) -> None:
        self.cancel_tick()
        loop = self._loop or asyncio.get_running_loop()
        delay = interval_ms / 1000

        def _fire() -> None:
            # Reschedule before running so the callback can cancel or replace it
            self._handle = loop.call_later(delay, _fire)
            callback()

        self._handle = loop.call_later(delay, _fire)

    def cancel_tick(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class CountdownScheduler:
    """A single countdown timer in whole seconds.

    ``on_expire`` fires exactly once per ``arm``: when the countdown reaches
    zero or when ``expire_now`` is called, whichever comes first. ``cancel``
    stops the countdown without firing it.
    """

    def __init__(
        self,
        tick_source: TickSource,
        on_expire: Callable[[], None],
        on_tick: Optional[Callable[[int], None]] = None,
        interval_ms: int = DEFAULT_TICK_INTERVAL_MS,
    ):
        self._tick_source = tick_source
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._interval_ms = interval_ms
        self._remaining = 0
        self._active = False

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def is_active(self) -> bool:
        return self._active

    def arm(self, duration_seconds: int) -> None:
        """Start counting down from ``duration_seconds``, replacing any running countdown."""
        self.cancel()
        self._remaining = max(int(duration_seconds), 0)
        self._active = True
        logger.debug("Countdown armed for %ss", self._remaining)

        if self._remaining == 0:
            self._expire()
            return
        self._tick_source.register_tick(self._tick, self._interval_ms)

    def cancel(self) -> None:
        """Stop the countdown without firing ``on_expire``. No-op when idle."""
        if not self._active:
            return
        self._active = False
        self._tick_source.cancel_tick()
        logger.debug("Countdown cancelled with %ss remaining", self._remaining)

    def expire_now(self) -> None:
        """Jump to zero and fire ``on_expire`` as a natural expiry would. No-op when idle."""
        if not self._active:
            return
        self._remaining = 0
        self._expire()

    def _tick(self) -> None:
        if not self._active:
            return
        self._remaining = max(self._remaining - 1, 0)
        if self._remaining == 0:
            self._expire()
        elif self._on_tick is not None:
            self._on_tick(self._remaining)

    def _expire(self) -> None:
        # Deactivate first so a late tick or a second skip cannot fire again
        self._active = False
        self._tick_source.cancel_tick()
        logger.debug("Countdown expired")
        self._on_expire()
