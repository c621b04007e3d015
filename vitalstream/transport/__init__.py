"""
VitalStream Transport Boundary
Wire codec, bounded outbox and sink adapters
"""

from .codec import decode_message, encode_message, snapshot_from_dict, snapshot_to_dict
from .outbox import SnapshotOutbox
from .sinks import MESSAGE_PATH, FanoutSink, MessageSink, StreamSink

__all__ = [
    'decode_message',
    'encode_message',
    'snapshot_from_dict',
    'snapshot_to_dict',
    'SnapshotOutbox',
    'MESSAGE_PATH',
    'FanoutSink',
    'MessageSink',
    'StreamSink',
]
