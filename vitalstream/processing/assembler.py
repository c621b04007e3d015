"""
Snapshot Assembler
Merges live values, staleness fallbacks, simulated channels and cached
derived metrics into one OutgoingSnapshot per tick
"""

import logging
from typing import Optional

from ..models import (
    FIELD_ACC_X, FIELD_ACC_Y, FIELD_ACC_Z, FIELD_DEFAULTS, FIELD_EDA, FIELD_HR,
    FIELD_IBI, FIELD_PPG_GREEN, FIELD_PPG_IR, FIELD_PPG_RED, FIELD_SKIN_TEMP,
    OutgoingSnapshot,
)
from .config import TrackingConfig
from .simulation import SimulationFallback
from .staleness import StalenessResolver, is_off_wrist
from .state import DerivedMetricsCache, LatestRecordStore

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = (
    FIELD_HR,
    FIELD_IBI,
    FIELD_PPG_GREEN,
    FIELD_PPG_RED,
    FIELD_PPG_IR,
    FIELD_ACC_X,
    FIELD_ACC_Y,
    FIELD_ACC_Z,
    FIELD_SKIN_TEMP,
    FIELD_EDA,
)


class SnapshotAssembler:
    """
    Builds outgoing snapshots from the shared tracking state

    Merge policy, applied to every field:
    - never observed this session and simulated -> simulated value
    - otherwise -> live value if fresh, else the field default
    """

    def __init__(
        self,
        latest: LatestRecordStore,
        derived: DerivedMetricsCache,
        simulation: SimulationFallback,
        config: Optional[TrackingConfig] = None,
    ):
        self.latest = latest
        self.derived = derived
        self.simulation = simulation
        self.config = config if config else TrackingConfig.for_session()

        self.snapshot_count = 0
        self.suppressed_count = 0

    def assemble(self, now: int) -> Optional[OutgoingSnapshot]:
        """
        Assemble the snapshot for one tick

        Args:
            now: Snapshot time (epoch ms)

        Returns:
            OutgoingSnapshot, or None when the tick is suppressed because
            the device is off-wrist
        """
        record = self.latest.read()

        if is_off_wrist(record):
            self.suppressed_count += 1
            logger.warning("Off-wrist detected (live HR == 0). Skipping snapshot.")
            return None

        self.simulation.step(record)

        resolver = StalenessResolver(record.updated_at, self.config.stale_threshold_ms)
        values = {}
        for key in SNAPSHOT_FIELDS:
            if not record.has_observed(key) and self.simulation.simulates(key):
                values[key] = self.simulation.value_for(key)
            else:
                values[key] = resolver.resolve(key, now, getattr(record, key), FIELD_DEFAULTS[key])

        metrics = self.derived.get()

        snapshot = OutgoingSnapshot(
            timestamp=now,
            ecg=self.simulation.ecg_sample(values[FIELD_HR]),
            bvp=metrics.bvp,
            spo2=metrics.spo2,
            respiration_rate=metrics.respiration_rate,
            **values,
        )
        self.snapshot_count += 1
        return snapshot

    def __repr__(self):
        return (
            f"<SnapshotAssembler(snapshots={self.snapshot_count}, "
            f"suppressed={self.suppressed_count})>"
        )
