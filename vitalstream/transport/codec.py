"""
Snapshot wire codec
JSON encoding of snapshot lists exchanged with the companion device
"""

import json
from typing import Iterable, List

from ..models import OutgoingSnapshot

# Snapshot attribute -> wire key
WIRE_KEYS = {
    'timestamp': 'timestamp',
    'hr': 'hr',
    'ibi': 'ibi',
    'ppg_green': 'ppgGreen',
    'ppg_ir': 'ppgIr',
    'ppg_red': 'ppgRed',
    'acc_x': 'accX',
    'acc_y': 'accY',
    'acc_z': 'accZ',
    'skin_temp': 'skinTemp',
    'eda': 'eda',
    'ecg': 'ecg',
    'spo2': 'spo2',
    'bvp': 'bvp',
    'respiration_rate': 'respirationRate',
}
_ATTRS = {wire: attr for attr, wire in WIRE_KEYS.items()}


def snapshot_to_dict(snapshot: OutgoingSnapshot) -> dict:
    data = {}
    for attr, wire in WIRE_KEYS.items():
        value = getattr(snapshot, attr)
        if attr == 'ibi' and value is not None:
            value = list(value)
        data[wire] = value
    return data


def snapshot_from_dict(data: dict) -> OutgoingSnapshot:
    values = {_ATTRS[key]: value for key, value in data.items() if key in _ATTRS}
    if values.get('ibi') is not None:
        values['ibi'] = tuple(values['ibi'])
    values.setdefault('timestamp', 0)
    return OutgoingSnapshot(**values)


def encode_message(snapshots: Iterable[OutgoingSnapshot]) -> str:
    """
    Encode snapshots as a JSON array

    Args:
        snapshots: Snapshots to send (normally a single one)

    Returns:
        JSON text
    """
    return json.dumps([snapshot_to_dict(s) for s in snapshots], separators=(',', ':'))


def decode_message(text: str) -> List[OutgoingSnapshot]:
    """
    Decode a JSON array of snapshots

    Raises:
        ValueError if the text is not a JSON array of objects
    """
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("Snapshot message must be a JSON array")
    return [snapshot_from_dict(item) for item in data]
