"""
VitalStream persistence (SQLAlchemy)
"""

from .connection import DEFAULT_DB_URL, get_db_connection
from .models import Base, ChannelStatus, SnapshotRecord
from .sink import DatabaseSink

__all__ = [
    'DEFAULT_DB_URL',
    'get_db_connection',
    'Base',
    'ChannelStatus',
    'SnapshotRecord',
    'DatabaseSink',
]
