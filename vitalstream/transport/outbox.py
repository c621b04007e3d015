"""
Snapshot Outbox
Bounded best-effort buffer between the snapshot loop and the transport sink
"""

import logging
import threading
from collections import deque
from typing import Callable, Optional

from ..models import OutgoingSnapshot

logger = logging.getLogger(__name__)

DeliverFn = Callable[[OutgoingSnapshot], Optional[bool]]


class SnapshotOutbox:
    """
    Bounded FIFO of snapshots awaiting delivery

    submit() enqueues a snapshot and flushes oldest-first until the sink
    reports a failure (returns False or raises). Undelivered snapshots stay
    queued for the next flush; when the queue is full the oldest is dropped.
    A sink returning None counts as delivered.
    """

    def __init__(self, deliver: DeliverFn, capacity: int = 100):
        """
        Args:
            deliver:  Transport sink
            capacity: Maximum number of queued snapshots
        """
        self.deliver = deliver
        self.capacity = capacity
        self._queue: deque = deque()
        self._lock = threading.Lock()

        self.last_delivery_ok: Optional[bool] = None
        self.delivered_count = 0
        self.failed_count = 0
        self.dropped_count = 0

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._queue)

    def submit(self, snapshot: OutgoingSnapshot) -> bool:
        """
        Queue a snapshot and try to flush

        Returns:
            bool: True if the queue was fully flushed
        """
        with self._lock:
            if len(self._queue) >= self.capacity:
                self._queue.popleft()
                self.dropped_count += 1
                logger.warning(f"Outbox full ({self.capacity}), dropped oldest snapshot")
            self._queue.append(snapshot)
        return self.flush()

    def flush(self) -> bool:
        """
        Deliver queued snapshots oldest-first, stopping at the first failure

        Returns:
            bool: True if nothing is left pending
        """
        with self._lock:
            while self._queue:
                snapshot = self._queue[0]
                try:
                    ok = self.deliver(snapshot)
                except Exception as e:
                    logger.error(f"Error delivering snapshot {snapshot.timestamp}: {e}")
                    ok = False

                if ok is False:
                    self.failed_count += 1
                    self.last_delivery_ok = False
                    return False

                self._queue.popleft()
                self.delivered_count += 1
                self.last_delivery_ok = True
            return True

    def clear(self):
        with self._lock:
            self._queue.clear()

    def get_status(self) -> dict:
        return {
            'pending': self.pending,
            'delivered': self.delivered_count,
            'failed': self.failed_count,
            'dropped': self.dropped_count,
            'last_delivery_ok': self.last_delivery_ok,
        }

    def __repr__(self):
        return f"<SnapshotOutbox(pending={self.pending}, capacity={self.capacity})>"
