from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict

from .clock import Clock, SystemClock
from .config import Settings, settings
from .scheduler import AsyncioTickScheduler, TickScheduler
from ..services.bay_status import BayStatusProvider
from ..services.identity import IdentityProvider
from ..services.session_tracker import SessionTracker

logger = logging.getLogger(__name__)


@dataclass
class TrackerRegistry:
    """
    One tracker per customer or guest key, all sharing the bay board.

    A tracker stays registered only while it holds a session or a request
    has leased it. Idle trackers left behind by tick-driven completion are
    pruned whenever a new tracker is created.
    """

    bays: BayStatusProvider = field(default_factory=BayStatusProvider)
    scheduler: TickScheduler = field(default_factory=AsyncioTickScheduler)
    clock: Clock = field(default_factory=SystemClock)
    config: Settings = field(default_factory=lambda: settings)
    trackers: Dict[str, SessionTracker] = field(default_factory=dict)  # key = customer id or guest id
    leases: Counter = field(default_factory=Counter)

    def get(self, key: str) -> SessionTracker | None:
        return self.trackers.get(key)

    def get_or_create(self, key: str, identity: IdentityProvider) -> SessionTracker:
        tracker = self.trackers.get(key)
        if tracker is None:
            self.prune_idle()
            tracker = SessionTracker(
                bay_provider=self.bays,
                identity=identity,
                scheduler=self.scheduler,
                clock=self.clock,
                config=self.config,
            )
            self.trackers[key] = tracker
            logger.debug(f"Tracker created for {key}")
        return tracker

    def acquire(self, key: str, identity: IdentityProvider) -> SessionTracker:
        tracker = self.get_or_create(key, identity)
        self.leases[key] += 1
        return tracker

    def release(self, key: str) -> None:
        self.leases[key] -= 1
        if self.leases[key] > 0:
            return
        del self.leases[key]
        tracker = self.trackers.get(key)
        if tracker is not None and tracker.current_session is None:
            self.drop(key)

    def prune_idle(self) -> int:
        idle = [
            key
            for key, tracker in self.trackers.items()
            if tracker.current_session is None and key not in self.leases
        ]
        for key in idle:
            self.drop(key)
        if idle:
            logger.info(f"Pruned {len(idle)} idle trackers")
        return len(idle)

    def drop(self, key: str) -> None:
        tracker = self.trackers.pop(key, None)
        if tracker is not None:
            tracker.close()
            logger.debug(f"Tracker dropped for {key}")

    def close_all(self) -> None:
        for key in list(self.trackers):
            self.drop(key)
        self.leases.clear()


store = TrackerRegistry()
