import random
import threading

import pytest

from conftest import FakeSource, RecordingSink, settle
from vitalstream import SessionStartError, SyntheticSensorSource, TrackingConfig, TrackingPipeline
from vitalstream.models import ChannelKind, DerivedMetrics, LatestRecord


def _pipeline(source, sink, config, clock):
    return TrackingPipeline(source, sink, config=config, clock=clock, rng=random.Random(11))


def _ppg_point(rng):
    return {
        'ppg_green': 1000 + rng.gauss(0, 5),
        'ppg_red': 2000 + rng.gauss(0, 5),
        'ppg_ir': 1500 + rng.gauss(0, 5),
    }


def test_start_push_stop_leaves_clean_state(fake_source, sink, config, clock):
    pipeline = _pipeline(fake_source, sink, config, clock)
    pipeline.start()
    settle(pipeline)
    assert pipeline.is_active

    rng = random.Random(0)
    for _ in range(100):
        fake_source.emit(ChannelKind.PPG, _ppg_point(rng))
        clock.advance(40)

    assert len(pipeline.ppg_window) == 100
    pipeline.process_tick()
    assert pipeline.derived.get().spo2 is not None

    pipeline.stop()

    assert not pipeline.is_active
    assert len(pipeline.ppg_window) == 0
    assert len(pipeline.hr_window) == 0
    assert pipeline.latest.read() == LatestRecord()
    assert pipeline.derived.get() == DerivedMetrics()
    assert not pipeline.coordinator.any_running
    assert set(fake_source.unsubscribed) == set(ChannelKind)


def test_start_fails_fast_when_source_unavailable(sink, config, clock):
    pipeline = _pipeline(FakeSource(connected=False), sink, config, clock)

    with pytest.raises(SessionStartError):
        pipeline.start()

    assert not pipeline.is_active
    assert pipeline.coordinator.loops == {}


def test_unavailable_channels_are_recorded_and_simulated(sink, config, clock):
    source = FakeSource(unsupported={ChannelKind.EDA}, invalid={ChannelKind.SKIN_TEMPERATURE})
    pipeline = _pipeline(source, sink, config, clock)
    pipeline.start()
    settle(pipeline)

    assert pipeline.unavailable_channels == {ChannelKind.EDA, ChannelKind.SKIN_TEMPERATURE}
    assert ChannelKind.EDA not in pipeline.active_channels

    source.emit(ChannelKind.HEART_RATE, {'heart_rate': 66})
    pipeline.snapshot_tick()
    snapshot = sink.snapshots[-1]

    assert snapshot.hr == 66
    assert snapshot.eda == pytest.approx(pipeline.simulation.eda)
    assert snapshot.skin_temp == 0.0
    pipeline.stop()


def test_start_while_active_is_ignored(fake_source, sink, config, clock):
    pipeline = _pipeline(fake_source, sink, config, clock)
    pipeline.start([ChannelKind.PPG])
    settle(pipeline)
    session_id = pipeline.session_id
    fake_source.emit(ChannelKind.PPG, {'ppg_green': 1, 'ppg_red': 2, 'ppg_ir': 3})

    pipeline.start([ChannelKind.HEART_RATE])

    assert pipeline.session_id == session_id
    assert pipeline.active_channels == {ChannelKind.PPG}
    assert len(pipeline.ppg_window) == 1
    pipeline.stop()


def test_restart_reinitializes_session(fake_source, sink, config, clock):
    pipeline = _pipeline(fake_source, sink, config, clock)
    pipeline.start()
    settle(pipeline)
    first_session = pipeline.session_id
    fake_source.emit(ChannelKind.HEART_RATE, {'heart_rate': 70})

    pipeline.restart()

    assert pipeline.is_active
    assert pipeline.session_id != first_session
    assert len(pipeline.hr_window) == 0
    assert pipeline.latest.read().hr is None
    pipeline.stop()


def test_off_wrist_emits_nothing(fake_source, sink, config, clock):
    pipeline = _pipeline(fake_source, sink, config, clock)
    pipeline.start()
    settle(pipeline)
    emitted = len(sink.snapshots)

    fake_source.emit(ChannelKind.HEART_RATE, {'heart_rate': 0})
    fake_source.emit(ChannelKind.PPG, {'ppg_green': 1000, 'ppg_red': 2000, 'ppg_ir': 1500})
    pipeline.snapshot_tick()

    assert len(sink.snapshots) == emitted
    pipeline.stop()


def test_stop_when_idle_is_harmless(fake_source, sink, config, clock):
    pipeline = _pipeline(fake_source, sink, config, clock)
    pipeline.stop()
    assert pipeline.get_status()['state'] == 'idle'


def test_loops_run_and_stop_with_synthetic_source():
    source = SyntheticSensorSource(
        rates={ChannelKind.PPG: 200.0, ChannelKind.ACCELEROMETER: 50.0},
        seed=3,
    )
    source.connect()

    received = threading.Event()
    sink = RecordingSink()

    def deliver(snapshot):
        sink(snapshot)
        if len(sink.snapshots) >= 3:
            received.set()
        return True

    config = TrackingConfig(snapshot_interval=0.02, processing_interval=0.05)
    pipeline = TrackingPipeline(source, deliver, config=config, rng=random.Random(1))
    pipeline.start()
    try:
        assert received.wait(5.0)
    finally:
        pipeline.stop()
        source.disconnect()

    assert not pipeline.coordinator.any_running
    assert len(pipeline.ppg_window) == 0
    assert pipeline.outbox.delivered_count >= 3
    timestamps = [s.timestamp for s in sink.snapshots]
    assert timestamps == sorted(timestamps)
