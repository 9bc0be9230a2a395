"""
Continuous sync scheduler.

Owns the single recurring timer used in continuous mode. Arming always
cancels the previous timer before starting a new one, so at most one timer is
alive at any time.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Set

logger = logging.getLogger(__name__)

FireCallback = Callable[[], Awaitable[Any]]
SleepFunction = Callable[[float], Awaitable[Any]]


class SchedulerState(Enum):
    """States of the continuous sync scheduler"""
    IDLE = "idle"
    ARMED = "armed"


class ContinuousSyncScheduler:
    """
    Asyncio interval timer with replace-on-arm semantics.

    The timer handle swap happens synchronously inside `arm`, so a fire from
    the old timer can never overlap the new one.
    """

    def __init__(self, sleep: Optional[SleepFunction] = None):
        """
        Initialize the scheduler.

        Args:
            sleep: Coroutine used to wait between fires (asyncio.sleep by default)
        """
        self._sleep = sleep or asyncio.sleep
        self._task: Optional[asyncio.Task] = None
        self._interval_seconds: Optional[float] = None
        self._armed_at: Optional[datetime] = None
        self._in_flight: Set[asyncio.Future] = set()

        # Metrics
        self.arm_count = 0
        self.fire_count = 0
        self.fire_errors = 0
        self.last_error: Optional[str] = None

    @property
    def state(self) -> SchedulerState:
        if self._task is not None and not self._task.done():
            return SchedulerState.ARMED
        return SchedulerState.IDLE

    @property
    def is_armed(self) -> bool:
        return self.state == SchedulerState.ARMED

    def arm(self, interval_seconds: float, on_fire: FireCallback) -> None:
        """
        Start firing `on_fire` every `interval_seconds`, replacing any timer.

        Must be called from a running event loop.
        """
        if interval_seconds <= 0:
            raise ValueError(f"Interval must be positive, got {interval_seconds}")

        self._cancel_current()
        self._task = asyncio.get_running_loop().create_task(
            self._run(interval_seconds, on_fire),
            name="continuous-type-sync"
        )
        self._interval_seconds = interval_seconds
        self._armed_at = datetime.now()
        self.arm_count += 1
        logger.debug(f"Armed continuous sync timer every {interval_seconds}s")

    def disarm(self) -> None:
        """Cancel the timer and return to idle"""
        if self._cancel_current():
            logger.debug("Disarmed continuous sync timer")
        self._interval_seconds = None
        self._armed_at = None

    def _cancel_current(self) -> bool:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            return True
        return False

    async def _run(self, interval_seconds: float, on_fire: FireCallback) -> None:
        while True:
            await self._sleep(interval_seconds)
            self.fire_count += 1
            # Fires outlive the timer so re-arming never cancels work in flight
            fire = asyncio.ensure_future(self._fire(on_fire))
            self._in_flight.add(fire)
            fire.add_done_callback(self._in_flight.discard)

    async def _fire(self, on_fire: FireCallback) -> None:
        try:
            await on_fire()
        except Exception as e:
            self.fire_errors += 1
            self.last_error = str(e)
            logger.warning(f"Error in continuous sync callback: {e}")

    async def drain(self) -> None:
        """Wait for fires that are still running"""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    def get_status(self) -> Dict[str, Any]:
        """Get scheduler status information"""
        return {
            "state": self.state.value,
            "interval_seconds": self._interval_seconds,
            "armed_at": self._armed_at.isoformat() if self._armed_at else None,
            "arm_count": self.arm_count,
            "fire_count": self.fire_count,
            "fire_errors": self.fire_errors,
            "last_error": self.last_error,
        }
