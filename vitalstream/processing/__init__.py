"""
VitalStream Processing Core
Windowed signal derivation and snapshot assembly

Components:
- Sample Ingest: typed samples -> latest record + analysis windows
- Window Buffers: bounded FIFOs (PPG triple shares one lock)
- Derived-Metric Calculator: BVP, SpO2 (ratio of ratios), respiration rate
- Staleness Resolver: live value vs default by last-update age
- Snapshot Assembler: one merged OutgoingSnapshot per tick
- Simulation Fallback: synthetic EDA/ECG for channels never observed
"""

from .assembler import SnapshotAssembler
from .buffers import PpgWindow, WindowBuffer
from .config import TrackingConfig
from .derived import (
    DerivedMetricCalculator,
    compute_bvp,
    compute_respiration_rate,
    compute_spo2,
    detrend,
    rms,
)
from .ingest import SampleIngest
from .simulation import SimulationFallback
from .staleness import StalenessResolver, is_off_wrist
from .state import DerivedMetricsCache, LatestRecordStore

__all__ = [
    'SnapshotAssembler',
    'PpgWindow',
    'WindowBuffer',
    'TrackingConfig',
    'DerivedMetricCalculator',
    'compute_bvp',
    'compute_respiration_rate',
    'compute_spo2',
    'detrend',
    'rms',
    'SampleIngest',
    'SimulationFallback',
    'StalenessResolver',
    'is_off_wrist',
    'DerivedMetricsCache',
    'LatestRecordStore',
]
