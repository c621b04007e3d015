"""
Transport sinks
Adapters that hand snapshots to a message client or a local stream
"""

import logging
from typing import Callable, Optional, Set, TextIO

from ..models import OutgoingSnapshot
from .codec import encode_message

logger = logging.getLogger(__name__)

MESSAGE_PATH = '/msg'


class MessageSink:
    """
    Sends each snapshot as a one-element JSON list through a message client

    The client is any callable ``send(path, payload: bytes) -> bool``.
    """

    def __init__(self, send_message: Callable[[str, bytes], Optional[bool]], path: str = MESSAGE_PATH):
        self.send_message = send_message
        self.path = path
        self.sent_count = 0

    def __call__(self, snapshot: OutgoingSnapshot) -> bool:
        payload = encode_message([snapshot]).encode('utf-8')
        try:
            ok = self.send_message(self.path, payload)
        except Exception as e:
            logger.error(f"Error sending snapshot to {self.path}: {e}")
            return False

        if ok is False:
            logger.warning(f"Message client rejected snapshot {snapshot.timestamp}")
            return False

        self.sent_count += 1
        return True


class StreamSink:
    """Writes one JSON message per line to a text stream (e.g. stdout)"""

    def __init__(self, stream: TextIO):
        self.stream = stream

    def __call__(self, snapshot: OutgoingSnapshot) -> bool:
        self.stream.write(encode_message([snapshot]) + '\n')
        self.stream.flush()
        return True


class FanoutSink:
    """
    Delivers each snapshot to several sinks in order

    A snapshot counts as delivered once every sink has accepted it. When one
    fails, the outbox retries the same snapshot and only the sinks that have
    not accepted it yet are called again.
    """

    def __init__(self, *sinks: Callable[[OutgoingSnapshot], Optional[bool]]):
        self.sinks = sinks
        self._pending: Optional[OutgoingSnapshot] = None
        self._accepted: Set[int] = set()

    def __call__(self, snapshot: OutgoingSnapshot) -> bool:
        if snapshot is not self._pending:
            self._pending = snapshot
            self._accepted = set()

        for index, sink in enumerate(self.sinks):
            if index in self._accepted:
                continue
            try:
                ok = sink(snapshot)
            except Exception as e:
                logger.error(f"Sink {sink!r} failed for snapshot {snapshot.timestamp}: {e}")
                return False
            if ok is False:
                return False
            self._accepted.add(index)

        self._pending = None
        self._accepted = set()
        return True
