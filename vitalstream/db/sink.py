"""
Database sink
Persists delivered snapshots on the receiving side
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import OutgoingSnapshot
from .models import SnapshotRecord

logger = logging.getLogger(__name__)


class DatabaseSink:
    """
    Transport sink that stores snapshots with SQLAlchemy

    Snapshots with a missing or zero heart rate are treated as off-wrist
    and skipped (reported as delivered). Rows are committed in batches.
    """

    def __init__(
        self,
        db_session: Session,
        session_id: Optional[UUID] = None,
        batch_commit_size: int = 10,
    ):
        """
        Args:
            db_session:        SQLAlchemy session
            session_id:        Tracking session the rows belong to
            batch_commit_size: Commit every N stored snapshots
        """
        self.db_session = db_session
        self.session_id = session_id
        self.batch_commit_size = batch_commit_size

        self.stored_count = 0
        self.skipped_count = 0

    def __call__(self, snapshot: OutgoingSnapshot) -> bool:
        if not snapshot.hr:
            self.skipped_count += 1
            logger.debug(f"Skipping snapshot {snapshot.timestamp} (HR=0 or missing)")
            return True

        try:
            row = SnapshotRecord(
                session_id=self.session_id,
                timestamp_ms=snapshot.timestamp,
                hr=snapshot.hr,
                ibi=list(snapshot.ibi) if snapshot.ibi is not None else None,
                ppg_green=snapshot.ppg_green,
                ppg_red=snapshot.ppg_red,
                ppg_ir=snapshot.ppg_ir,
                acc_x=snapshot.acc_x,
                acc_y=snapshot.acc_y,
                acc_z=snapshot.acc_z,
                skin_temp=snapshot.skin_temp,
                eda=snapshot.eda,
                ecg=snapshot.ecg,
                bvp=snapshot.bvp,
                spo2=snapshot.spo2,
                respiration_rate=snapshot.respiration_rate,
            )
            self.db_session.add(row)
            self.stored_count += 1

            if self.stored_count % self.batch_commit_size == 0:
                self.db_session.commit()
                logger.debug(f"Committed batch: {self.stored_count} total snapshots")
            return True

        except SQLAlchemyError as e:
            logger.error(f"Error storing snapshot {snapshot.timestamp}: {e}")
            self.db_session.rollback()
            return False

    def flush(self):
        """Commit anything not yet committed"""
        try:
            self.db_session.commit()
            logger.info(f"Final commit: {self.stored_count} snapshots stored")
        except SQLAlchemyError as e:
            logger.error(f"Error in final commit: {e}")
            self.db_session.rollback()

    def __repr__(self):
        return f"<DatabaseSink(stored={self.stored_count}, skipped={self.skipped_count})>"
