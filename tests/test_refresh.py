"""Tests for albumctl.core.refresh: single-flight refresh and the refresh monitor."""

from __future__ import annotations

import asyncio

import pytest

from albumctl.core.exceptions import NetworkError, RefreshFailedError
from albumctl.core.refresh import RefreshCoordinator, RefreshMonitor


class GatedRefresh:
    """Refresh function that blocks until released and counts its calls."""

    def __init__(self, error: Exception | None = None):
        self.calls = 0
        self.error = error
        self.release = asyncio.Event()

    async def __call__(self) -> None:
        self.calls += 1
        await self.release.wait()
        if self.error is not None:
            raise self.error


# =============================================================================
# RefreshCoordinator
# =============================================================================


class TestRefreshCoordinator:
    def test_concurrent_callers_share_one_refresh(self):
        async def scenario():
            refresh = GatedRefresh()
            coordinator = RefreshCoordinator(refresh)

            tasks = [asyncio.create_task(coordinator.acquire_refresh()) for _ in range(3)]
            await asyncio.sleep(0)
            assert coordinator.in_flight is True
            assert coordinator.pending == 2

            refresh.release.set()
            await asyncio.gather(*tasks)
            return refresh, coordinator

        refresh, coordinator = asyncio.run(scenario())
        assert refresh.calls == 1
        assert coordinator.in_flight is False
        assert coordinator.pending == 0

    def test_failure_reaches_every_caller(self):
        async def scenario():
            refresh = GatedRefresh(RefreshFailedError("https://x", 401))
            coordinator = RefreshCoordinator(refresh)

            tasks = [asyncio.create_task(coordinator.acquire_refresh()) for _ in range(3)]
            await asyncio.sleep(0)
            refresh.release.set()
            results = await asyncio.gather(*tasks, return_exceptions=True)
            return refresh, coordinator, results

        refresh, coordinator, results = asyncio.run(scenario())
        assert refresh.calls == 1
        assert all(isinstance(r, RefreshFailedError) for r in results)
        assert coordinator.in_flight is False

    def test_waiters_resume_in_arrival_order(self):
        async def scenario():
            refresh = GatedRefresh()
            coordinator = RefreshCoordinator(refresh)
            order: list[int] = []

            async def caller(n: int) -> None:
                await coordinator.acquire_refresh()
                order.append(n)

            tasks = [asyncio.create_task(caller(n)) for n in range(4)]
            await asyncio.sleep(0)
            refresh.release.set()
            await asyncio.gather(*tasks)
            return order

        order = asyncio.run(scenario())
        # The driver resumes first, then queued callers FIFO
        assert order == [0, 1, 2, 3]

    def test_sequential_refreshes_each_call_once(self):
        calls = []

        async def refresh() -> None:
            calls.append(1)

        async def scenario():
            coordinator = RefreshCoordinator(refresh)
            await coordinator.acquire_refresh()
            await coordinator.acquire_refresh()

        asyncio.run(scenario())
        assert len(calls) == 2

    def test_cancelled_driver_cancels_waiters(self):
        async def scenario():
            refresh = GatedRefresh()
            coordinator = RefreshCoordinator(refresh)

            driver = asyncio.create_task(coordinator.acquire_refresh())
            await asyncio.sleep(0)
            waiter = asyncio.create_task(coordinator.acquire_refresh())
            await asyncio.sleep(0)

            driver.cancel()
            results = await asyncio.gather(driver, waiter, return_exceptions=True)
            return coordinator, results

        coordinator, results = asyncio.run(scenario())
        assert all(isinstance(r, asyncio.CancelledError) for r in results)
        assert coordinator.in_flight is False
        assert coordinator.pending == 0


# =============================================================================
# RefreshMonitor
# =============================================================================


class TestRefreshMonitor:
    def test_ticks_while_session_present(self):
        calls = []

        async def refresh() -> None:
            calls.append(1)

        async def scenario():
            monitor = RefreshMonitor(refresh, lambda: True, interval=0.01)
            monitor.start()
            await asyncio.sleep(0.055)
            running = monitor.running
            monitor.stop()
            return running, monitor

        running, monitor = asyncio.run(scenario())
        assert running is True
        assert len(calls) >= 3
        assert monitor.running is False

    def test_stops_itself_without_session(self):
        calls = []

        async def refresh() -> None:
            calls.append(1)

        async def scenario():
            monitor = RefreshMonitor(refresh, lambda: False, interval=0.01)
            monitor.start()
            await asyncio.sleep(0.03)
            return monitor.running

        assert asyncio.run(scenario()) is False
        assert calls == []

    @pytest.mark.parametrize("status", [400, 401])
    def test_stops_when_session_rejected(self, status: int):
        calls = []

        async def refresh() -> None:
            calls.append(1)
            raise RefreshFailedError("https://x", status)

        async def scenario():
            monitor = RefreshMonitor(refresh, lambda: True, interval=0.01)
            monitor.start()
            await asyncio.sleep(0.05)
            return monitor.running

        assert asyncio.run(scenario()) is False
        assert len(calls) == 1

    def test_keeps_ticking_after_transient_failure(self):
        calls = []

        async def refresh() -> None:
            calls.append(1)
            if len(calls) == 1:
                raise NetworkError("https://x", "connection reset")

        async def scenario():
            monitor = RefreshMonitor(refresh, lambda: True, interval=0.01)
            monitor.start()
            await asyncio.sleep(0.045)
            running = monitor.running
            monitor.stop()
            return running

        assert asyncio.run(scenario()) is True
        assert len(calls) >= 2

    def test_start_replaces_timer_and_stop_is_idempotent(self):
        async def refresh() -> None:
            pass

        async def scenario():
            monitor = RefreshMonitor(refresh, lambda: True, interval=10)
            monitor.start()
            first = monitor._task
            monitor.start()
            await asyncio.sleep(0)
            replaced = first.cancelled()
            monitor.stop()
            monitor.stop()
            return replaced, monitor.running

        replaced, running = asyncio.run(scenario())
        assert replaced is True
        assert running is False
