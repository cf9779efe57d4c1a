"""
Test configuration for the session tracker backend.

backend/ goes on sys.path so 'golfsim' resolves whether pytest runs from the
repository root or from backend/. The fake clock and manual tick scheduler
let tests drive the tracker ticks deterministically.
Settings are read at import time, so the test database is chosen here first.
"""
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

os.environ.setdefault("DB_URL", "sqlite:///:memory:")
os.environ.setdefault("STAFF_EMAILS", "frontdesk@evergreen.golf")
os.environ.setdefault("SEED_DEMO_BAYS", "true")

_backend_dir = Path(__file__).parent.parent

if str(_backend_dir) not in sys.path:
    sys.path.insert(0, str(_backend_dir))

import pytest  # noqa: E402

from golfsim.core.config import Settings  # noqa: E402
from golfsim.services.bay_status import BayStatusProvider  # noqa: E402
from golfsim.services.identity import IdentityProvider  # noqa: E402
from golfsim.services.session_tracker import SessionTracker  # noqa: E402


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2025, 6, 1, 18, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now = self._now + timedelta(seconds=seconds)

    def set(self, value: datetime) -> None:
        self._now = value


class ManualTick:
    def __init__(self, interval: float, callback: Callable[[], None], name: str, due: datetime) -> None:
        self.name = name
        self.interval = interval
        self.callback = callback
        self.due = due
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class ManualTickScheduler:
    """Fires ticks only when the test moves the fake clock forward."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.ticks: list[ManualTick] = []

    def every(self, interval: float, callback: Callable[[], None], name: str) -> ManualTick:
        tick = ManualTick(interval, callback, name, self.clock.now() + timedelta(seconds=interval))
        self.ticks.append(tick)
        return tick

    @property
    def armed(self) -> list[ManualTick]:
        return [t for t in self.ticks if not t.cancelled]

    def advance(self, seconds: float) -> None:
        end = self.clock.now() + timedelta(seconds=seconds)
        while True:
            due = [t for t in self.armed if t.due <= end]
            if not due:
                break
            tick = min(due, key=lambda t: t.due)
            self.clock.set(tick.due)
            tick.due = tick.due + timedelta(seconds=tick.interval)
            tick.callback()
        self.clock.set(end)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler(clock: FakeClock) -> ManualTickScheduler:
    return ManualTickScheduler(clock)


@pytest.fixture
def bays() -> BayStatusProvider:
    provider = BayStatusProvider()
    provider.seed_demo_bays()
    return provider


@pytest.fixture
def config() -> Settings:
    return Settings(BAY_MISMATCH_POLICY="observe", STATUS_TICK_SECONDS=30, ACTIVE_TICK_SECONDS=60)


@pytest.fixture
def tracker(bays, scheduler, clock, config):
    t = SessionTracker(
        bay_provider=bays,
        identity=IdentityProvider(),
        scheduler=scheduler,
        clock=clock,
        config=config,
    )
    yield t
    t.close()
