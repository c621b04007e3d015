"""
Staleness Resolver
Per-field live-or-default decision based on last-update age
"""

from typing import Any, Mapping, Optional

from ..models import LatestRecord

DEFAULT_STALE_THRESHOLD_MS = 60_000


def is_off_wrist(record: LatestRecord) -> bool:
    """True when the live heart rate is present and exactly zero (no skin contact)"""
    return record.hr is not None and record.hr == 0


class StalenessResolver:
    """
    Chooses between a live value and its default for each snapshot field

    Bound to one point-in-time copy of the per-field update timestamps so
    that every field of a snapshot is judged against the same generation.
    """

    def __init__(
        self,
        last_updates: Mapping[str, int],
        threshold_ms: int = DEFAULT_STALE_THRESHOLD_MS,
    ):
        """
        Args:
            last_updates: Field key -> last update time (epoch ms)
            threshold_ms: Age at which a value is considered stale
        """
        self.last_updates = last_updates
        self.threshold_ms = threshold_ms

    def last_update(self, field_key: str) -> Optional[int]:
        return self.last_updates.get(field_key)

    def is_fresh(self, field_key: str, now: int) -> bool:
        last = self.last_updates.get(field_key)
        if last is None:
            return False
        return now - last < self.threshold_ms

    def resolve(self, field_key: str, now: int, live_value: Any, default_value: Any) -> Any:
        """
        Return live_value if the field was updated less than threshold_ms
        before now, otherwise default_value
        """
        if self.is_fresh(field_key, now):
            return live_value
        return default_value
