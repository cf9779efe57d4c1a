from __future__ import annotations

import asyncio

import pytest

from golfsim.core.scheduler import AsyncioTickScheduler


@pytest.mark.asyncio
async def test_tick_fires_repeatedly_until_cancelled() -> None:
    fired = []
    handle = AsyncioTickScheduler().every(0.01, lambda: fired.append(1), "test")

    await asyncio.sleep(0.08)
    handle.cancel()
    count = len(fired)
    await asyncio.sleep(0.05)

    assert count >= 2
    assert len(fired) == count
    assert handle.cancelled is True


@pytest.mark.asyncio
async def test_callback_may_cancel_its_own_tick() -> None:
    fired = []
    handles = []

    def _once():
        fired.append(1)
        handles[0].cancel()

    handles.append(AsyncioTickScheduler().every(0.01, _once, "once"))
    await asyncio.sleep(0.08)

    assert fired == [1]


@pytest.mark.asyncio
async def test_failing_callback_keeps_ticking(caplog) -> None:
    fired = []

    def _flaky():
        fired.append(1)
        raise RuntimeError("tick failed")

    handle = AsyncioTickScheduler().every(0.01, _flaky, "flaky")
    await asyncio.sleep(0.08)
    handle.cancel()

    assert len(fired) >= 2
    assert "Tick 'flaky' callback failed" in caplog.text


def test_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        AsyncioTickScheduler().every(0, lambda: None, "bad")
