import json

from vitalstream.models import OutgoingSnapshot
from vitalstream.transport import (
    MESSAGE_PATH, FanoutSink, MessageSink, SnapshotOutbox, decode_message, encode_message,
)


def _snapshot(ts=1, **kw):
    return OutgoingSnapshot(timestamp=ts, **kw)


def test_encode_uses_companion_wire_keys():
    text = encode_message([_snapshot(1_700_000_000_000, hr=72, ibi=(830,), ppg_green=1000,
                                     skin_temp=33.1, respiration_rate=12.5)])
    data = json.loads(text)

    assert isinstance(data, list) and len(data) == 1
    item = data[0]
    assert item['timestamp'] == 1_700_000_000_000
    assert item['hr'] == 72
    assert item['ibi'] == [830]
    assert item['ppgGreen'] == 1000
    assert item['skinTemp'] == 33.1
    assert item['respirationRate'] == 12.5
    assert item['spo2'] is None


def test_decode_message_restores_snapshot():
    original = _snapshot(5, hr=60, ibi=(1000, 990), spo2=98.0, eda=0.8)
    assert decode_message(encode_message([original])) == [original]


def test_outbox_delivers_in_order():
    delivered = []
    outbox = SnapshotOutbox(lambda s: delivered.append(s.timestamp), capacity=10)

    for ts in range(3):
        assert outbox.submit(_snapshot(ts))

    assert delivered == [0, 1, 2]
    assert outbox.pending == 0
    assert outbox.last_delivery_ok is True


def test_outbox_retries_after_failure():
    state = {'up': False}
    delivered = []

    def deliver(snapshot):
        if not state['up']:
            return False
        delivered.append(snapshot.timestamp)
        return True

    outbox = SnapshotOutbox(deliver, capacity=10)
    assert not outbox.submit(_snapshot(1))
    assert not outbox.submit(_snapshot(2))
    assert outbox.pending == 2
    assert outbox.last_delivery_ok is False

    state['up'] = True
    assert outbox.submit(_snapshot(3))
    assert delivered == [1, 2, 3]
    assert outbox.pending == 0


def test_outbox_drops_oldest_when_full():
    outbox = SnapshotOutbox(lambda s: False, capacity=3)
    for ts in range(5):
        outbox.submit(_snapshot(ts))

    assert outbox.pending == 3
    assert outbox.dropped_count == 2


def test_outbox_treats_exceptions_as_failed_delivery():
    def deliver(snapshot):
        raise ConnectionError("node unreachable")

    outbox = SnapshotOutbox(deliver, capacity=5)

    assert outbox.submit(_snapshot(1)) is False
    assert outbox.failed_count == 1
    assert outbox.pending == 1


def test_message_sink_sends_one_element_json_list():
    sent = []
    sink = MessageSink(lambda path, payload: sent.append((path, payload)) or True)

    assert sink(_snapshot(9, hr=70)) is True

    path, payload = sent[0]
    assert path == MESSAGE_PATH
    assert json.loads(payload.decode('utf-8'))[0]['hr'] == 70


def test_message_sink_reports_client_failure():
    sink = MessageSink(lambda path, payload: False)
    assert sink(_snapshot(1)) is False

    def raising(path, payload):
        raise OSError("no route")

    assert MessageSink(raising)(_snapshot(2)) is False


def test_fanout_retries_only_the_sink_that_failed():
    stored, printed = [], []
    state = {'db_up': True}

    def db(snapshot):
        if not state['db_up']:
            return False
        stored.append(snapshot.timestamp)
        return True

    def stream(snapshot):
        if len(printed) == 1 and not state.get('stream_recovered'):
            state['stream_recovered'] = True
            return False
        printed.append(snapshot.timestamp)
        return True

    outbox = SnapshotOutbox(FanoutSink(db, stream), capacity=10)

    assert outbox.submit(_snapshot(1))
    assert not outbox.submit(_snapshot(2))
    assert outbox.submit(_snapshot(3))

    assert stored == [1, 2, 3]
    assert printed == [1, 2, 3]


def test_fanout_stops_at_first_failure():
    printed = []
    sink = FanoutSink(lambda s: False, lambda s: printed.append(s.timestamp))

    assert sink(_snapshot(1)) is False
    assert sink(_snapshot(1)) is False
    assert printed == []
