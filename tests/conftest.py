import random
import time

import pytest

from vitalstream.coordinator import ManualClock
from vitalstream.models import ChannelKind
from vitalstream.processing import (
    DerivedMetricsCache,
    LatestRecordStore,
    PpgWindow,
    SampleIngest,
    SimulationFallback,
    SnapshotAssembler,
    TrackingConfig,
    WindowBuffer,
)
from vitalstream.source import SensorSource


class FakeSource(SensorSource):
    """Sensor source driven by the test: events are pushed with emit()."""

    def __init__(self, connected=True, unsupported=(), invalid=()):
        self.connected = connected
        self.unsupported = set(unsupported)
        self.invalid = set(invalid)
        self.listeners = {}
        self.unsubscribed = []

    def connect(self):
        self.connected = True

    def is_connected(self):
        return self.connected

    def subscribe(self, kind, listener):
        if kind in self.invalid:
            raise ValueError(f"invalid tracker type {kind.value}")
        if kind in self.unsupported:
            raise NotImplementedError(f"{kind.value} not supported")
        self.listeners[kind] = listener

    def unsubscribe(self, kind):
        self.listeners.pop(kind, None)
        self.unsubscribed.append(kind)

    def emit(self, kind, *data_points):
        self.listeners[kind](kind, list(data_points))


class RecordingSink:
    def __init__(self, result=True):
        self.result = result
        self.snapshots = []

    def __call__(self, snapshot):
        self.snapshots.append(snapshot)
        return self.result


def settle(pipeline):
    """Wait for the snapshot loop's first tick so the test owns every later tick."""
    loop = pipeline.coordinator.loops['snapshot']
    deadline = time.monotonic() + 5.0
    while loop.tick_count < 1 and time.monotonic() < deadline:
        time.sleep(0.001)


@pytest.fixture
def clock():
    return ManualClock(start_ms=1_000_000)


@pytest.fixture
def config():
    # Loops effectively idle; tests drive ticks directly
    return TrackingConfig(snapshot_interval=3600.0, processing_interval=3600.0)


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def core(clock, config):
    """Wired-up processing core without any loops."""
    latest = LatestRecordStore()
    derived = DerivedMetricsCache()
    ppg = PpgWindow(config.ppg_window_samples)
    hr = WindowBuffer(config.hr_window_samples)
    simulation = SimulationFallback(random.Random(7))

    class Core:
        pass

    c = Core()
    c.latest = latest
    c.derived = derived
    c.ppg_window = ppg
    c.hr_window = hr
    c.simulation = simulation
    c.ingest = SampleIngest(latest, ppg, hr, clock)
    c.assembler = SnapshotAssembler(latest, derived, simulation, config)
    return c


ALL_CHANNELS = tuple(ChannelKind)
