"""
Tracking Session Configuration
Loop cadences, window sizes and derived-metric thresholds
"""

from dataclasses import dataclass, field
from typing import Tuple

from ..models import ChannelKind


@dataclass
class TrackingConfig:
    """
    Configuration parameters for a tracking session.

    Controls the snapshot and processing cadences, the sliding-window sizes
    used for derived metrics, the staleness threshold and the outbox size.
    """

    # Loop cadences (seconds)
    snapshot_interval: float = 1.0  # 1 Hz snapshots
    processing_interval: float = 5.0  # Heavy processing every 5 seconds

    # Staleness
    stale_threshold_ms: int = 60_000  # Fall back to defaults after 1 minute

    # PPG window
    ppg_sample_rate: float = 25.0  # Assumed PPG rate (Hz)
    ppg_window_seconds: int = 5
    min_ppg_fraction: float = 0.8  # Need 80% of the window for SpO2/BVP

    # Heart-rate window (respiration rate)
    hr_sample_rate: float = 1.0  # HR events arrive at ~1 Hz
    hr_window_seconds: int = 120
    min_hr_samples_for_resp: int = 30

    # Respiration band (Hz): 6 to 30 breaths/min
    resp_freq_low: float = 0.1
    resp_freq_high: float = 0.5

    # Transport
    outbox_capacity: int = 100

    # Channels requested when start() is called without an explicit set
    default_channels: Tuple[ChannelKind, ...] = field(default_factory=lambda: tuple(ChannelKind))

    @property
    def ppg_window_samples(self) -> int:
        return int(self.ppg_window_seconds * self.ppg_sample_rate)

    @property
    def min_ppg_samples(self) -> int:
        return int(self.ppg_window_samples * self.min_ppg_fraction)

    @property
    def hr_window_samples(self) -> int:
        return int(self.hr_window_seconds * self.hr_sample_rate)

    @classmethod
    def for_session(cls) -> 'TrackingConfig':
        """
        Create the default configuration: 1 Hz snapshots, 5 s processing.

        Returns:
            TrackingConfig with default cadences.
        """
        return cls()

    @classmethod
    def for_high_rate(cls) -> 'TrackingConfig':
        """
        Create a configuration for high-rate streaming (25 snapshots/s).

        Returns:
            TrackingConfig with a 40 ms snapshot interval.
        """
        return cls(snapshot_interval=0.04)
