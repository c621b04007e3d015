import pytest

from vitalstream.models import (
    AccelerometerSample, ChannelKind, EdaSample, HeartRateSample, PpgSample,
    SkinTemperatureSample, decode_data_point,
)
from vitalstream.exceptions import SampleDecodeError


def test_ppg_sample_updates_window_and_record(core):
    core.ingest.on_sample(PpgSample(1000.4, 2000.6, 1500.0), now=5_000)

    assert core.ppg_window.snapshot() == ([1000.4], [2000.6], [1500.0])
    record = core.latest.read()
    assert (record.ppg_green, record.ppg_red, record.ppg_ir) == (1000, 2000, 1500)
    assert record.updated_at == {'ppg_green': 5_000, 'ppg_red': 5_000, 'ppg_ir': 5_000}


def test_heart_rate_sample_feeds_hr_window(core):
    core.ingest.on_sample(HeartRateSample(71, (845, 850)), now=1_000)
    core.ingest.on_sample(HeartRateSample(73), now=2_000)

    assert core.hr_window.snapshot_all() == [(1_000, 71.0), (2_000, 73.0)]
    record = core.latest.read()
    assert record.hr == 73
    assert record.ibi is None
    assert record.updated_at['hr'] == 2_000
    assert record.updated_at['ibi'] == 1_000


def test_heart_rate_without_ibi_clears_previous_list(core):
    core.ingest.on_sample(HeartRateSample(71, (845, 850)), now=1_000)
    core.ingest.on_sample(HeartRateSample(73), now=2_000)

    snapshot = core.assembler.assemble(3_000)

    assert snapshot.hr == 73
    assert snapshot.ibi is None


def test_other_channels_update_record_only(core):
    core.ingest.on_sample(AccelerometerSample(1, -2, 4100), now=10)
    core.ingest.on_sample(SkinTemperatureSample(33.4), now=20)
    core.ingest.on_sample(EdaSample(1.9), now=30)

    record = core.latest.read()
    assert (record.acc_x, record.acc_y, record.acc_z) == (1, -2, 4100)
    assert record.skin_temp == 33.4
    assert record.eda == 1.9
    assert record.updated_at['acc_z'] == 10
    assert record.updated_at['eda'] == 30
    assert len(core.ppg_window) == 0
    assert len(core.hr_window) == 0


def test_unknown_sample_type_rejected(core):
    with pytest.raises(TypeError):
        core.ingest.on_sample({'hr': 60})


def test_bad_data_point_is_skipped_rest_of_batch_ingested(core, clock):
    core.ingest.on_data_received(ChannelKind.PPG, [
        {'ppg_green': 1000, 'ppg_red': 2000, 'ppg_ir': 1500},
        {'ppg_green': 1001, 'ppg_red': 'oops', 'ppg_ir': 1501},
        {'ppg_green': 1002, 'ppg_red': 2002},
        {'ppg_green': 1003, 'ppg_red': 2003, 'ppg_ir': 1503},
    ])

    assert core.ppg_window.green.snapshot_all() == [1000.0, 1003.0]
    assert core.ingest.error_count == 2
    assert core.ingest.sample_count == 2
    assert core.latest.read().updated_at['ppg_green'] == clock.now_ms()


def test_unknown_channel_kind_is_isolated(core):
    core.ingest.on_data_received('gyroscope', [{'x': 1}])
    core.ingest.on_data_received(ChannelKind.EDA, [{'skin_conductance': 2.5}])

    assert core.ingest.error_count == 1
    assert core.latest.read().eda == 2.5


def test_decode_rejects_non_finite_values():
    with pytest.raises(SampleDecodeError):
        decode_data_point(ChannelKind.SKIN_TEMPERATURE, {'object_temperature': float('nan')})


def test_decode_heart_rate_with_ibi():
    sample = decode_data_point(ChannelKind.HEART_RATE, {'heart_rate': 64, 'ibi_list': [930, 941]})
    assert sample == HeartRateSample(64, (930, 941))


def test_reset_clears_windows_and_record(core):
    core.ingest.on_sample(PpgSample(1, 2, 3), now=1)
    core.ingest.on_sample(HeartRateSample(60), now=1)
    core.ingest.reset()

    assert len(core.ppg_window) == 0
    assert len(core.hr_window) == 0
    assert core.latest.read().updated_at == {}
