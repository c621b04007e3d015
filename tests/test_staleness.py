from vitalstream.models import LatestRecord
from vitalstream.processing import StalenessResolver, is_off_wrist


def test_fresh_value_is_live_stale_value_is_default():
    resolver = StalenessResolver({'hr': 0}, threshold_ms=60_000)

    assert resolver.resolve('hr', 59_000, 72, 0) == 72
    assert resolver.resolve('hr', 61_000, 72, 0) == 0


def test_threshold_boundary_is_stale():
    resolver = StalenessResolver({'eda': 1_000}, threshold_ms=60_000)

    assert resolver.resolve('eda', 60_999, 1.2, 0.0) == 1.2
    assert resolver.resolve('eda', 61_000, 1.2, 0.0) == 0.0


def test_never_updated_field_uses_default():
    resolver = StalenessResolver({}, threshold_ms=60_000)

    assert resolver.resolve('skin_temp', 0, 33.1, 0.0) == 0.0
    assert resolver.last_update('skin_temp') is None


def test_off_wrist_only_when_live_hr_is_exactly_zero():
    assert is_off_wrist(LatestRecord(hr=0))
    assert not is_off_wrist(LatestRecord(hr=None))
    assert not is_off_wrist(LatestRecord(hr=64))
