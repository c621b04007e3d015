"""
Shared Tracking State
Latest-values record and derived-metrics cache shared between the
ingest path, the processing loop and the snapshot loop
"""

import logging
import threading

from ..models import DerivedMetrics, LatestRecord

logger = logging.getLogger(__name__)


class LatestRecordStore:
    """
    Owner of the single LatestRecord for a tracking session

    Writers apply field-level updates as copy-on-write replacements under a
    lock, so concurrent updates to different fields are never lost. Readers
    get the current immutable record and never see a half-applied update.
    """

    def __init__(self):
        """Initialize with an empty record"""
        self._lock = threading.Lock()
        self._record = LatestRecord()

    def update(self, now_ms: int, unstamped=(), **values) -> LatestRecord:
        """
        Replace the given fields and stamp them with now_ms

        Args:
            now_ms: Update time (epoch milliseconds)
            unstamped: Fields to replace without touching their update time
            **values: Field name -> new value

        Returns:
            LatestRecord: The record that is now current
        """
        with self._lock:
            self._record = self._record.with_fields(now_ms, unstamped, **values)
            return self._record

    def read(self) -> LatestRecord:
        """Return the current record (point-in-time, immutable)"""
        with self._lock:
            return self._record

    def reset(self):
        """Drop all values and timestamps"""
        with self._lock:
            self._record = LatestRecord()
        logger.debug("Latest record reset")

    def __repr__(self):
        return f"<LatestRecordStore(fields={len(self.read().updated_at)})>"


class DerivedMetricsCache:
    """
    Holds the last DerivedMetrics produced by the processing loop

    The calculator replaces the whole value; the snapshot loop reads
    whatever is current without waiting for a computation to finish.
    """

    def __init__(self):
        self._metrics = DerivedMetrics()

    def set(self, metrics: DerivedMetrics):
        self._metrics = metrics

    def get(self) -> DerivedMetrics:
        return self._metrics

    def reset(self):
        self._metrics = DerivedMetrics()

    def __repr__(self):
        return f"<DerivedMetricsCache({self._metrics})>"
