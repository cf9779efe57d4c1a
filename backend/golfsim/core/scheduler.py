"""Cooperative periodic ticks on the asyncio event loop."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


TickCallback = Callable[[], None]


class TickHandle(Protocol):
    name: str
    interval: float

    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


class TickScheduler(Protocol):
    def every(self, interval: float, callback: TickCallback, name: str) -> TickHandle: ...


class _LoopTick:
    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: TickCallback, name: str) -> None:
        self.name = name
        self.interval = interval
        self._loop = loop
        self._callback = callback
        self._timer: asyncio.TimerHandle | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def arm(self) -> None:
        self._timer = self._loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        # re-arm first: the callback may cancel or replace this tick
        self.arm()
        try:
            self._callback()
        except Exception:
            logger.exception(f"Tick '{self.name}' callback failed")

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class AsyncioTickScheduler:
    """
    Runs tick callbacks on the event loop with ``call_later``.

    All callbacks run on the loop thread, so tick handlers never race with
    request handlers that touch the same tracker.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        # no caching: the registry outlives any single loop
        return self._loop or asyncio.get_running_loop()

    def every(self, interval: float, callback: TickCallback, name: str) -> TickHandle:
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        tick = _LoopTick(self._get_loop(), interval, callback, name)
        tick.arm()
        logger.debug(f"Armed tick '{name}' every {interval}s")
        return tick
