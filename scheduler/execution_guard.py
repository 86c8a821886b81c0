"""
Duplicate execution guard for manual schedule runs

A schedule started less than the guard window ago is refused until its
call completes. Marks live in process memory, so the guard only covers a
single service instance.
"""

import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from config import ControlPanelConfig
from exceptions import ExecutionInProgressError

logger = logging.getLogger(__name__)


class ExecutionGuard:
    """In-flight marks of schedule executions, keyed by schedule id"""

    def __init__(self, window_ms: int = 2000, ttl_ms: int = 30000,
                 clock: Optional[Callable[[], float]] = None):
        """
        Args:
            window_ms: A second run inside this window is refused
            ttl_ms: Marks older than this are pruned on every acquire
            clock: Millisecond clock, for tests
        """
        self.window_ms = window_ms
        self.ttl_ms = ttl_ms
        self._clock = clock or (lambda: time.monotonic() * 1000)
        self._executing: Dict[str, float] = {}

    @classmethod
    def from_config(cls, config: ControlPanelConfig) -> 'ExecutionGuard':
        return cls(
            window_ms=config.scheduler.execution_guard_window_ms,
            ttl_ms=config.scheduler.execution_guard_ttl_ms
        )

    @staticmethod
    def _key(schedule_id: Any) -> str:
        return f"schedule-{schedule_id}"

    def acquire(self, schedule_id: Any) -> None:
        """Mark a schedule as executing

        Raises:
            ExecutionInProgressError: The schedule was marked inside the window
        """
        key = self._key(schedule_id)
        now = self._clock()

        last_execution = self._executing.get(key)
        if last_execution is not None and (now - last_execution) < self.window_ms:
            logger.warning(f"Refused duplicate execution of schedule {schedule_id}")
            raise ExecutionInProgressError(schedule_id)

        self._executing[key] = now

        for stale_key, timestamp in list(self._executing.items()):
            if now - timestamp > self.ttl_ms:
                del self._executing[stale_key]

    def release(self, schedule_id: Any) -> None:
        self._executing.pop(self._key(schedule_id), None)

    def is_executing(self, schedule_id: Any) -> bool:
        return self._key(schedule_id) in self._executing

    async def run(self, schedule_id: Any, call: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``call`` under the guard, releasing the mark however it ends"""
        self.acquire(schedule_id)
        try:
            return await call()
        finally:
            self.release(schedule_id)
