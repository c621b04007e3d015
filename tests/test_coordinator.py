import threading
import time
from datetime import datetime, timedelta

import pytest

from vitalstream.coordinator import CentralClock, LoopCoordinator, ManualClock, PeriodicLoop
from vitalstream.coordinator import clock as clock_module


def test_clock_is_monotonic():
    clock = CentralClock()
    stamps = [clock.now_ms() for _ in range(200)]
    assert stamps == sorted(stamps)
    stats = clock.get_stats()
    assert stats['reads'] == 200
    assert stats['last_ms'] == stamps[-1]


def test_clock_holds_when_wall_time_steps_back(monkeypatch):
    clock = CentralClock()
    first = clock.now()

    earlier = first - timedelta(seconds=5)

    class SteppedBack(datetime):
        @classmethod
        def now(cls, tz=None):
            return earlier

    monkeypatch.setattr(clock_module, 'datetime', SteppedBack)
    assert clock.now() == first

    clock.reset()
    assert clock.now() == earlier
    assert clock.get_stats()['reads'] == 1


def test_manual_clock_moves_only_when_told():
    clock = ManualClock(start_ms=500)
    assert clock.now_ms() == 500
    clock.advance(250)
    assert clock.now_ms() == 750
    clock.set(10)
    assert clock.now_ms() == 10


def test_loop_ticks_until_stopped():
    ticked = threading.Event()
    loop = PeriodicLoop('fast', 0.01, ticked.set)

    loop.start()
    assert ticked.wait(2.0)
    loop.stop()

    count = loop.tick_count
    time.sleep(0.05)
    assert loop.tick_count == count
    assert not loop.is_running


def test_wait_first_loop_cancelled_before_first_tick():
    calls = []
    loop = PeriodicLoop('slow', 60.0, lambda: calls.append(1), wait_first=True)

    loop.start()
    loop.stop()

    assert calls == []


def test_tick_errors_do_not_kill_the_loop():
    calls = []
    done = threading.Event()

    def tick():
        calls.append(1)
        if len(calls) >= 3:
            done.set()
        raise RuntimeError("tick failed")

    loop = PeriodicLoop('flaky', 0.005, tick)
    loop.start()
    assert done.wait(2.0)
    loop.stop()

    assert loop.error_count >= 3


def test_coordinator_lifecycle():
    coordinator = LoopCoordinator(ManualClock())
    coordinator.register_loop(PeriodicLoop('a', 60.0, lambda: None, wait_first=True))
    coordinator.register_loop(PeriodicLoop('b', 60.0, lambda: None, wait_first=True))

    coordinator.start_all()
    assert coordinator.any_running
    assert set(coordinator.get_all_status()) == {'a', 'b'}

    coordinator.clear()
    assert not coordinator.any_running
    assert coordinator.loops == {}


def test_unknown_loop_raises():
    coordinator = LoopCoordinator()
    with pytest.raises(ValueError):
        coordinator.start_loop('missing')
