"""
Sample Ingest
Writes incoming sensor samples into the latest record and the analysis windows
"""

import logging
from typing import Any, Iterable, Mapping, Optional, TYPE_CHECKING

from ..models import (
    FIELD_IBI, AccelerometerSample, ChannelKind, EdaSample, HeartRateSample, PpgSample,
    SensorSample, SkinTemperatureSample, decode_data_point,
)
from .buffers import PpgWindow, WindowBuffer
from .state import LatestRecordStore

if TYPE_CHECKING:
    from vitalstream.coordinator import CentralClock

logger = logging.getLogger(__name__)


class SampleIngest:
    """
    Entry point for sensor events

    Every sample updates the matching LatestRecord field(s). PPG triples and
    heart-rate values are also appended to their analysis windows.
    """

    def __init__(
        self,
        latest: LatestRecordStore,
        ppg_window: PpgWindow,
        hr_window: WindowBuffer,
        clock: 'CentralClock',
    ):
        """
        Args:
            latest:     Shared latest-values store
            ppg_window: Green/red/ir analysis window
            hr_window:  Heart-rate analysis window of (timestamp_ms, bpm)
            clock:      Clock used to stamp updates
        """
        self.latest = latest
        self.ppg_window = ppg_window
        self.hr_window = hr_window
        self.clock = clock

        self.sample_count = 0
        self.error_count = 0

    def on_data_received(self, kind: ChannelKind, data_points: Iterable[Mapping[str, Any]]):
        """
        Sensor source callback: decode and ingest a batch of raw data points

        A data point that fails to decode or ingest is logged and skipped;
        the rest of the batch is still processed.

        Args:
            kind:        Channel the batch arrived on
            data_points: Raw payloads
        """
        now = self.clock.now_ms()
        for data_point in data_points:
            try:
                sample = decode_data_point(kind, data_point)
                self.on_sample(sample, now)
            except Exception as e:
                self.error_count += 1
                logger.error(f"Error processing data point on {kind}: {e}")

    def on_sample(self, sample: SensorSample, now: Optional[int] = None):
        """
        Ingest one typed sample

        Args:
            sample: Sensor sample
            now:    Update time (epoch ms); defaults to the clock

        Raises:
            TypeError for an object that is not a SensorSample
        """
        if now is None:
            now = self.clock.now_ms()

        if isinstance(sample, PpgSample):
            self.ppg_window.push(sample.green, sample.red, sample.ir)
            self.latest.update(
                now,
                ppg_green=int(sample.green),
                ppg_red=int(sample.red),
                ppg_ir=int(sample.ir),
            )
        elif isinstance(sample, HeartRateSample):
            self.hr_window.push((now, float(sample.value)))
            if sample.ibi is not None:
                self.latest.update(now, hr=sample.value, ibi=tuple(sample.ibi))
            else:
                # IBI is cleared but keeps its last timestamp
                self.latest.update(now, unstamped=(FIELD_IBI,), hr=sample.value, ibi=None)
            logger.debug(f"HR received: {sample.value}")
        elif isinstance(sample, AccelerometerSample):
            self.latest.update(now, acc_x=sample.x, acc_y=sample.y, acc_z=sample.z)
        elif isinstance(sample, SkinTemperatureSample):
            self.latest.update(now, skin_temp=sample.value)
        elif isinstance(sample, EdaSample):
            self.latest.update(now, eda=sample.value)
        else:
            raise TypeError(f"Unsupported sample type: {type(sample).__name__}")

        self.sample_count += 1

    def reset(self):
        """Clear analysis windows and the latest record"""
        self.ppg_window.clear()
        self.hr_window.clear()
        self.latest.reset()
        self.sample_count = 0
        self.error_count = 0

    def get_status(self) -> dict:
        return {
            'samples_ingested': self.sample_count,
            'errors': self.error_count,
            'ppg_window': len(self.ppg_window),
            'hr_window': len(self.hr_window),
        }

    def __repr__(self):
        return f"<SampleIngest(samples={self.sample_count}, errors={self.error_count})>"
