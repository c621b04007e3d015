"""
VitalStream
Continuous physiological metric derivation from wearable biosensor streams

Channels:
- PPG: green / red / infrared (~25 Hz)
- Heart rate + inter-beat intervals (~1 Hz)
- Accelerometer: 3 axes
- Skin temperature
- Electrodermal activity (EDA)

Derived metrics (every 5 s):
- Blood-volume pulse (detrended green PPG)
- SpO2 (ratio of ratios on red / infrared)
- Respiration rate (spectral peak of the heart-rate series)

Snapshots (every 1 s, or 40 ms high-rate) merge live values, staleness
fallbacks, simulated channels and the latest derived metrics.
"""

from .exceptions import SampleDecodeError, SessionStartError, VitalStreamError
from .models import (
    AccelerometerSample,
    ChannelKind,
    DerivedMetrics,
    EdaSample,
    HeartRateSample,
    LatestRecord,
    OutgoingSnapshot,
    PpgSample,
    SkinTemperatureSample,
    decode_data_point,
)
from .pipeline import TrackingPipeline
from .processing import TrackingConfig
from .source import SensorSource, SyntheticSensorSource

__all__ = [
    'SampleDecodeError',
    'SessionStartError',
    'VitalStreamError',
    'AccelerometerSample',
    'ChannelKind',
    'DerivedMetrics',
    'EdaSample',
    'HeartRateSample',
    'LatestRecord',
    'OutgoingSnapshot',
    'PpgSample',
    'SkinTemperatureSample',
    'decode_data_point',
    'TrackingPipeline',
    'TrackingConfig',
    'SensorSource',
    'SyntheticSensorSource',
]

__version__ = '1.0.0'
