"""
Sliding-window buffers for windowed analysis.

``WindowBuffer`` is a fixed-capacity FIFO; pushing past capacity evicts the
oldest value. ``PpgWindow`` keeps the green, red and infrared buffers behind
one lock so the three channels are always written and read as a triple.
"""

import threading
from collections import deque
from typing import Generic, List, Optional, Tuple, TypeVar

T = TypeVar('T')


class WindowBuffer(Generic[T]):
    """Bounded FIFO with lock-guarded push and point-in-time snapshots."""

    def __init__(self, capacity: int, lock: Optional[threading.RLock] = None):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._lock = lock if lock is not None else threading.RLock()
        self._items: deque = deque(maxlen=capacity)

    def push(self, value: T):
        with self._lock:
            self._items.append(value)

    def snapshot_all(self) -> List[T]:
        with self._lock:
            return list(self._items)

    def clear(self):
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __repr__(self):
        return f"<WindowBuffer(size={len(self)}, capacity={self.capacity})>"


class PpgWindow:
    """Green/red/infrared PPG windows sharing a single critical section."""

    def __init__(self, capacity: int):
        self._lock = threading.RLock()
        self.green: WindowBuffer[float] = WindowBuffer(capacity, self._lock)
        self.red: WindowBuffer[float] = WindowBuffer(capacity, self._lock)
        self.ir: WindowBuffer[float] = WindowBuffer(capacity, self._lock)

    @property
    def capacity(self) -> int:
        return self.green.capacity

    def push(self, green: float, red: float, ir: float):
        with self._lock:
            self.green.push(green)
            self.red.push(red)
            self.ir.push(ir)

    def snapshot(self) -> Tuple[List[float], List[float], List[float]]:
        """Copy all three channels as one consistent triple."""
        with self._lock:
            return (
                self.green.snapshot_all(),
                self.red.snapshot_all(),
                self.ir.snapshot_all(),
            )

    def clear(self):
        with self._lock:
            self.green.clear()
            self.red.clear()
            self.ir.clear()

    def __len__(self) -> int:
        return len(self.green)

    def __repr__(self):
        return f"<PpgWindow(size={len(self)}, capacity={self.capacity})>"
