"""
VitalStream Data Model
Sensor samples, the latest-values record, derived metrics and outgoing snapshots
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .exceptions import SampleDecodeError


class ChannelKind(str, Enum):
    """Subscribable sensor channels."""
    PPG = 'ppg'
    HEART_RATE = 'heart_rate'
    ACCELEROMETER = 'accelerometer'
    SKIN_TEMPERATURE = 'skin_temperature'
    EDA = 'eda'


# ---------------------------------------------------------------------------
# Field keys for per-field last-update timestamps
# ---------------------------------------------------------------------------
FIELD_HR        = 'hr'
FIELD_IBI       = 'ibi'
FIELD_PPG_GREEN = 'ppg_green'
FIELD_PPG_RED   = 'ppg_red'
FIELD_PPG_IR    = 'ppg_ir'
FIELD_ACC_X     = 'acc_x'
FIELD_ACC_Y     = 'acc_y'
FIELD_ACC_Z     = 'acc_z'
FIELD_SKIN_TEMP = 'skin_temp'
FIELD_EDA       = 'eda'

# Values used when a field is stale or was never seen
FIELD_DEFAULTS: Dict[str, Any] = {
    FIELD_HR: 0,
    FIELD_IBI: None,
    FIELD_PPG_GREEN: 0,
    FIELD_PPG_RED: 0,
    FIELD_PPG_IR: 0,
    FIELD_ACC_X: 0,
    FIELD_ACC_Y: 0,
    FIELD_ACC_Z: 0,
    FIELD_SKIN_TEMP: 0.0,
    FIELD_EDA: 0.0,
}


# ---------------------------------------------------------------------------
# Sensor samples (closed union)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PpgSample:
    green: float
    red: float
    ir: float


@dataclass(frozen=True)
class HeartRateSample:
    value: int
    ibi: Optional[Tuple[int, ...]] = None


@dataclass(frozen=True)
class AccelerometerSample:
    x: int
    y: int
    z: int


@dataclass(frozen=True)
class SkinTemperatureSample:
    value: float


@dataclass(frozen=True)
class EdaSample:
    value: float


SensorSample = Union[
    PpgSample,
    HeartRateSample,
    AccelerometerSample,
    SkinTemperatureSample,
    EdaSample,
]


def _number(payload: Mapping[str, Any], key: str) -> float:
    try:
        value = payload[key]
    except KeyError:
        raise SampleDecodeError(f"Missing value key '{key}'") from None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SampleDecodeError(f"Value for '{key}' is not numeric: {value!r}")
    if not math.isfinite(value):
        raise SampleDecodeError(f"Value for '{key}' is not finite: {value!r}")
    return value


def decode_data_point(kind: ChannelKind, payload: Mapping[str, Any]) -> SensorSample:
    """
    Decode one raw event payload from the sensor source into a typed sample.

    Args:
        kind:    Channel the payload was delivered on.
        payload: Mapping of value keys to raw values.

    Returns:
        The matching SensorSample.

    Raises:
        SampleDecodeError if a required key is missing or malformed.
    """
    kind = ChannelKind(kind)

    if kind is ChannelKind.PPG:
        return PpgSample(
            green=float(_number(payload, 'ppg_green')),
            red=float(_number(payload, 'ppg_red')),
            ir=float(_number(payload, 'ppg_ir')),
        )
    if kind is ChannelKind.HEART_RATE:
        ibi = payload.get('ibi_list')
        if ibi is not None:
            try:
                ibi = tuple(int(v) for v in ibi)
            except (TypeError, ValueError) as e:
                raise SampleDecodeError(f"Invalid IBI list: {ibi!r}") from e
        return HeartRateSample(value=int(_number(payload, 'heart_rate')), ibi=ibi)
    if kind is ChannelKind.ACCELEROMETER:
        return AccelerometerSample(
            x=int(_number(payload, 'x')),
            y=int(_number(payload, 'y')),
            z=int(_number(payload, 'z')),
        )
    if kind is ChannelKind.SKIN_TEMPERATURE:
        return SkinTemperatureSample(value=float(_number(payload, 'object_temperature')))
    if kind is ChannelKind.EDA:
        return EdaSample(value=float(_number(payload, 'skin_conductance')))

    raise SampleDecodeError(f"Unhandled channel kind: {kind}")


# ---------------------------------------------------------------------------
# Shared records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LatestRecord:
    """
    Most recently observed value per field plus per-field update times.

    Instances are never mutated; LatestRecordStore swaps in a new record
    on every update.
    """
    hr: Optional[int] = None
    ibi: Optional[Tuple[int, ...]] = None
    ppg_green: Optional[int] = None
    ppg_red: Optional[int] = None
    ppg_ir: Optional[int] = None
    acc_x: Optional[int] = None
    acc_y: Optional[int] = None
    acc_z: Optional[int] = None
    skin_temp: Optional[float] = None
    eda: Optional[float] = None
    updated_at: Mapping[str, int] = field(default_factory=dict)

    def with_fields(self, now_ms: int, unstamped: Tuple[str, ...] = (), **values) -> 'LatestRecord':
        """
        Return a copy with the given fields replaced and stamped at now_ms.

        Fields named in ``unstamped`` are replaced but keep their previous
        update time.
        """
        stamps = dict(self.updated_at)
        for key in values:
            if key not in unstamped:
                stamps[key] = now_ms
        return replace(self, updated_at=stamps, **values)

    def has_observed(self, field_key: str) -> bool:
        return field_key in self.updated_at


@dataclass(frozen=True)
class DerivedMetrics:
    """Last output of the derived-metric calculator."""
    bvp: Optional[float] = None
    spo2: Optional[float] = None
    respiration_rate: Optional[float] = None


@dataclass(frozen=True)
class OutgoingSnapshot:
    """One composite record, emitted once per snapshot tick."""
    timestamp: int
    hr: Optional[int] = None
    ibi: Optional[Tuple[int, ...]] = None
    ppg_green: Optional[int] = None
    ppg_red: Optional[int] = None
    ppg_ir: Optional[int] = None
    acc_x: Optional[int] = None
    acc_y: Optional[int] = None
    acc_z: Optional[int] = None
    skin_temp: Optional[float] = None
    eda: Optional[float] = None
    ecg: Optional[float] = None
    bvp: Optional[float] = None
    spo2: Optional[float] = None
    respiration_rate: Optional[float] = None
