import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from exceptions import ExecutionInProgressError, get_http_status
from scheduler.execution_guard import ExecutionGuard


class _Clock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def test_second_acquire_inside_window_is_refused():
    clock = _Clock(1000)
    guard = ExecutionGuard(window_ms=2000, clock=clock)

    guard.acquire(7)
    clock.now = 2500

    with pytest.raises(ExecutionInProgressError) as exc_info:
        guard.acquire(7)

    assert exc_info.value.message == 'Schedule execution already in progress. Please wait...'
    assert get_http_status(exc_info.value) == 429


def test_acquire_after_window_is_allowed():
    clock = _Clock(0)
    guard = ExecutionGuard(window_ms=2000, clock=clock)

    guard.acquire(7)
    clock.now = 2000
    guard.acquire(7)

    assert guard.is_executing(7)


def test_other_schedules_are_independent():
    guard = ExecutionGuard(clock=_Clock(0))

    guard.acquire(1)
    guard.acquire(2)

    assert guard.is_executing(1) and guard.is_executing(2)


def test_stale_marks_are_pruned():
    clock = _Clock(0)
    guard = ExecutionGuard(window_ms=2000, ttl_ms=30000, clock=clock)
    guard.acquire(1)

    clock.now = 31000
    guard.acquire(2)

    assert not guard.is_executing(1)
    assert guard.is_executing(2)


@pytest.mark.asyncio
async def test_run_releases_mark_on_success_and_failure():
    guard = ExecutionGuard(clock=_Clock(0))
    calls = []

    async def ok():
        calls.append('ok')
        return {'queued': True}

    async def boom():
        raise RuntimeError('upstream down')

    assert await guard.run(3, ok) == {'queued': True}
    assert not guard.is_executing(3)

    with pytest.raises(RuntimeError):
        await guard.run(3, boom)
    assert not guard.is_executing(3)
    assert calls == ['ok']


@pytest.mark.asyncio
async def test_run_does_not_call_when_refused():
    guard = ExecutionGuard(clock=_Clock(0))
    guard.acquire(4)
    calls = []

    async def call():
        calls.append('called')

    with pytest.raises(ExecutionInProgressError):
        await guard.run(4, call)
    assert calls == []
    assert guard.is_executing(4)


def test_from_config(test_config):
    test_config.scheduler.execution_guard_window_ms = 500
    guard = ExecutionGuard.from_config(test_config)

    assert guard.window_ms == 500
    assert guard.ttl_ms == 30000
