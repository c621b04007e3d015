"""
VitalStream database models
Snapshot history and per-session channel status
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, BigInteger, Column, DateTime, Float, Integer, String, Text, Uuid
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class SnapshotRecord(Base):
    """One delivered OutgoingSnapshot"""
    __tablename__ = 'snapshots'

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(Uuid, nullable=True, index=True)
    timestamp_ms = Column(BigInteger, nullable=False, index=True)

    hr = Column(Integer)
    ibi = Column(JSON)
    ppg_green = Column(Integer)
    ppg_red = Column(Integer)
    ppg_ir = Column(Integer)
    acc_x = Column(Integer)
    acc_y = Column(Integer)
    acc_z = Column(Integer)
    skin_temp = Column(Float)
    eda = Column(Float)
    ecg = Column(Float)

    bvp = Column(Float)
    spo2 = Column(Float)
    respiration_rate = Column(Float)

    def __repr__(self):
        return f"<SnapshotRecord(t={self.timestamp_ms}, hr={self.hr}, spo2={self.spo2})>"


class ChannelStatus(Base):
    """Outcome of a channel subscription attempt at session start"""
    __tablename__ = 'channel_status'

    status_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(Uuid, nullable=True, index=True)
    channel = Column(String(32), nullable=False)
    status = Column(String(16), nullable=False)  # 'active' or 'failed'
    recorded_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    notes = Column(Text)

    def __repr__(self):
        return f"<ChannelStatus(channel={self.channel}, status={self.status})>"
