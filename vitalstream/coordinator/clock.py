"""
Session Clock
Single time source for sample stamps, staleness checks and snapshot timestamps
"""

import threading
import logging
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


class CentralClock:
    """
    Wall clock in epoch milliseconds that never runs backwards

    Sensor callbacks and both loops read it concurrently. If the system time
    is stepped back, the last value handed out is repeated until the wall
    clock catches up, so field ages are never negative.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._last_timestamp: Optional[datetime] = None
        self._call_count = 0

        logger.info("Central clock initialized")

    def now(self) -> datetime:
        """Current UTC time, held at the last reading if the wall clock moved back"""
        with self._lock:
            current_time = datetime.now(timezone.utc)

            if self._last_timestamp and current_time < self._last_timestamp:
                current_time = self._last_timestamp
                logger.debug("Wall clock moved backwards, holding last timestamp")

            self._last_timestamp = current_time
            self._call_count += 1

            return current_time

    def now_ms(self) -> int:
        return int(self.now().timestamp() * 1000)

    def reset(self):
        """Forget the last reading, allowing time to start over"""
        with self._lock:
            self._last_timestamp = None
            self._call_count = 0

    def get_stats(self) -> dict:
        with self._lock:
            last = self._last_timestamp
            return {
                'reads': self._call_count,
                'last_ms': int(last.timestamp() * 1000) if last else None,
            }

    def __repr__(self):
        return f"<CentralClock(reads={self._call_count})>"


class ManualClock(CentralClock):
    """
    Clock that only moves when told to, for deterministic replay and tests

    Args:
        start_ms: Initial time in epoch milliseconds
    """

    def __init__(self, start_ms: int = 0):
        super().__init__()
        self._now_ms = start_ms

    def now(self) -> datetime:
        with self._lock:
            self._call_count += 1
            self._last_timestamp = datetime.fromtimestamp(self._now_ms / 1000, tz=timezone.utc)
            return self._last_timestamp

    def now_ms(self) -> int:
        with self._lock:
            self._call_count += 1
            return self._now_ms

    def advance(self, ms: int):
        with self._lock:
            self._now_ms += ms

    def set(self, ms: int):
        with self._lock:
            self._now_ms = ms
