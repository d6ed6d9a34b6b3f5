"""Session refresh coordination.

``RefreshCoordinator`` makes sure that any number of concurrent callers who
need a fresh session share a single refresh call. ``RefreshMonitor`` keeps a
live session warm by refreshing it on a fixed interval.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable

from albumctl.core.config import DEFAULT_REFRESH_INTERVAL
from albumctl.core.exceptions import AlbumCtlError, AuthenticationError
from albumctl.core.logging import get_logger

logger = get_logger(__name__)

# Statuses from the refresh endpoint meaning the session is definitively gone
SESSION_GONE_STATUSES = {400, 401}

RefreshFn = Callable[[], Awaitable[None]]


# =============================================================================
# RefreshCoordinator
# =============================================================================


class RefreshCoordinator:
    """Single-flight refresh with a FIFO queue of waiters.

    The first caller drives the refresh; callers arriving while it is in
    flight wait in arrival order and inherit its outcome. The queue is only
    non-empty while a refresh is in flight and is fully drained before the
    in-flight flag clears.
    """

    def __init__(self, refresh: RefreshFn):
        """Initialize the coordinator.

        Args:
            refresh: Coroutine function issuing exactly one refresh call.
                It raises on failure.
        """
        self._refresh = refresh
        self._in_flight = False
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def pending(self) -> int:
        """Number of callers queued behind the in-flight refresh."""
        return len(self._waiters)

    async def acquire_refresh(self) -> None:
        """Return once a refreshed session is confirmed to exist.

        Raises:
            Exception: Whatever the driving refresh call raised.
        """
        if self._in_flight:
            waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            logger.debug("Refresh in flight, queued caller (%d waiting)", len(self._waiters))
            await waiter
            return

        self._in_flight = True
        try:
            await self._refresh()
        except asyncio.CancelledError:
            self._drain(cancelled=True)
            raise
        except Exception as e:
            self._drain(error=e)
            raise
        else:
            self._drain()
        finally:
            self._in_flight = False

    def reset(self) -> None:
        """Cancel any waiters and clear state (used between test cases)."""
        self._drain(cancelled=True)
        self._in_flight = False

    def _drain(self, error: BaseException | None = None, cancelled: bool = False) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            if cancelled:
                waiter.cancel()
            elif error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(None)


# =============================================================================
# RefreshMonitor
# =============================================================================


class RefreshMonitor:
    """Recurring proactive refresh while a session is believed present."""

    def __init__(
        self,
        refresh: RefreshFn,
        is_session_present: Callable[[], bool],
        interval: float = DEFAULT_REFRESH_INTERVAL,
    ):
        """Initialize the monitor.

        Args:
            refresh: Coroutine function refreshing the session.
            is_session_present: Reads the session marker.
            interval: Seconds between ticks.
        """
        self._refresh = refresh
        self._is_session_present = is_session_present
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking, replacing any timer already running.

        Must be called from inside a running event loop.
        """
        self.stop()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Cancel the timer. Safe to call when not running."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self) -> None:
        me = asyncio.current_task()
        while True:
            await asyncio.sleep(self.interval)

            if not self._is_session_present():
                logger.debug("No session present, stopping refresh monitor")
                self._halt(me)
                return

            try:
                await self._refresh()
            except AuthenticationError as e:
                if e.status_code in SESSION_GONE_STATUSES:
                    logger.info("Proactive refresh rejected (HTTP %s), stopping monitor", e.status_code)
                    self._halt(me)
                    return
                logger.warning("Proactive refresh failed: %s", e)
            except AlbumCtlError as e:
                logger.warning("Proactive refresh failed: %s", e)

    def _halt(self, task: asyncio.Task[None] | None) -> None:
        # Only forget the handle if a newer start() has not replaced it
        if self._task is task:
            self._task = None
