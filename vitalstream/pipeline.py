"""
VitalStream - Tracking Pipeline
===============================
Central module that owns the full lifecycle of a tracking session.

Usage:
    pipeline = TrackingPipeline(source, sink)
    pipeline.start({ChannelKind.PPG, ChannelKind.HEART_RATE})
    # ... snapshots are delivered to the sink once per tick ...
    pipeline.stop()

Loops managed:
    - processing : slow cadence (default 5 s), recomputes BVP / SpO2 /
                   respiration rate from the analysis windows
    - snapshot   : fast cadence (default 1 s, 40 ms high-rate), assembles
                   one OutgoingSnapshot and hands it to the outbox

Failure policy:
    If a channel fails to subscribe, it is skipped for the rest of the
    session, its outcome is recorded in the channel_status table (when a
    database session is given), and its fields fall back to simulation or
    defaults. If the sensor source itself is not connected, start() raises
    SessionStartError and no loops are started.
"""

import uuid
import logging
import random
from datetime import datetime, timezone
from typing import Iterable, Optional, Set
from uuid import UUID

from sqlalchemy.orm import Session

from .coordinator import CentralClock, LoopCoordinator, PeriodicLoop
from .exceptions import SessionStartError
from .models import ChannelKind
from .processing import (
    DerivedMetricCalculator,
    DerivedMetricsCache,
    LatestRecordStore,
    PpgWindow,
    SampleIngest,
    SimulationFallback,
    SnapshotAssembler,
    TrackingConfig,
    WindowBuffer,
)
from .source import SensorSource
from .transport import SnapshotOutbox
from .transport.outbox import DeliverFn

logger = logging.getLogger(__name__)

LOOP_PROCESSING = 'processing'
LOOP_SNAPSHOT   = 'snapshot'

STATE_IDLE   = 'idle'
STATE_ACTIVE = 'active'


class TrackingPipeline:
    """
    Owns the shared state and both loops for one tracking session.

    Responsibilities:
      - Subscribe the requested channels on the sensor source
      - Route sensor events into Sample Ingest
      - Run the derived-metric and snapshot loops
      - Deliver snapshots through a bounded outbox
      - Provide clean start() / stop() and report status via get_status()
    """

    def __init__(
        self,
        source: SensorSource,
        sink: DeliverFn,
        config: Optional[TrackingConfig] = None,
        clock: Optional[CentralClock] = None,
        rng: Optional[random.Random] = None,
        db_session: Optional[Session] = None,
    ):
        """
        Args:
            source     : External sensor event source
            sink       : Transport delivery function for snapshots
            config     : Tracking configuration (defaults to for_session())
            clock      : Shared clock for ingest and snapshot timestamps
            rng        : Random source for the simulation fallback
            db_session : Optional SQLAlchemy session for channel status rows
        """
        self.source = source
        self.config = config if config else TrackingConfig.for_session()
        self.db_session = db_session
        self.coordinator = LoopCoordinator(clock)
        self.clock = self.coordinator.clock

        # Shared state, injected into ingest and both loops
        self.latest = LatestRecordStore()
        self.derived = DerivedMetricsCache()
        self.ppg_window = PpgWindow(self.config.ppg_window_samples)
        self.hr_window = WindowBuffer(self.config.hr_window_samples)
        self.simulation = SimulationFallback(rng)

        self.ingest = SampleIngest(self.latest, self.ppg_window, self.hr_window, self.clock)
        self.calculator = DerivedMetricCalculator(
            self.ppg_window, self.hr_window, self.derived, self.config,
        )
        self.assembler = SnapshotAssembler(
            self.latest, self.derived, self.simulation, self.config,
        )
        self.outbox = SnapshotOutbox(sink, self.config.outbox_capacity)

        self.state = STATE_IDLE
        self.session_id: Optional[UUID] = None
        self._active_channels: Set[ChannelKind] = set()
        self._unavailable_channels: Set[ChannelKind] = set()

        logger.info("TrackingPipeline created")

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.state == STATE_ACTIVE

    @property
    def active_channels(self) -> Set[ChannelKind]:
        return set(self._active_channels)

    @property
    def unavailable_channels(self) -> Set[ChannelKind]:
        return set(self._unavailable_channels)

    def start(
        self,
        channels: Optional[Iterable[ChannelKind]] = None,
        session_id: Optional[UUID] = None,
    ):
        """
        Start a tracking session (Idle -> Active).

        Ignored with a warning if a session is already active.

        Args:
            channels:   Channels to subscribe; defaults to config.default_channels
            session_id: Id for the new session; a fresh uuid4 when omitted

        Raises:
            SessionStartError if the sensor source is not connected.
        """
        if self.is_active:
            logger.warning("Tracking session already active, ignoring start")
            return

        if not self.source.is_connected():
            logger.error("Sensor source is not available. Cannot start tracking.")
            raise SessionStartError("Sensor source is not connected")

        requested = [ChannelKind(c) for c in (channels or self.config.default_channels)]

        logger.info("=" * 55)
        logger.info("  VitalStream tracking session - starting")
        logger.info("=" * 55)

        self._reset_state()
        self.session_id = session_id if session_id else uuid.uuid4()

        for kind in requested:
            self._subscribe(kind)

        self.coordinator.register_loop(PeriodicLoop(
            LOOP_PROCESSING,
            self.config.processing_interval,
            self.process_tick,
            wait_first=True,
        ))
        self.coordinator.register_loop(PeriodicLoop(
            LOOP_SNAPSHOT,
            self.config.snapshot_interval,
            self.snapshot_tick,
        ))
        self.coordinator.start_all()
        self.state = STATE_ACTIVE

        logger.info(
            f"Session {self.session_id} active: "
            f"{sorted(k.value for k in self._active_channels) or 'none'} | "
            f"unavailable: {sorted(k.value for k in self._unavailable_channels) or 'none'}"
        )

    def stop(self):
        """
        Stop the session (-> Idle).

        Cancels and joins both loops, unsubscribes every channel, clears all
        analysis windows and resets the latest record and derived metrics.
        Safe to call when already idle.
        """
        logger.info("Stopping tracking session...")

        self.coordinator.clear()

        for kind in list(self._active_channels):
            try:
                self.source.unsubscribe(kind)
            except Exception as e:
                logger.error(f"Error unsubscribing {kind.value}: {e}", exc_info=True)
        self._active_channels.clear()

        self._reset_state()
        self.state = STATE_IDLE
        logger.info("✓ Tracking session stopped")

    def restart(self, channels: Optional[Iterable[ChannelKind]] = None):
        """Stop any active session and start a fresh one."""
        self.stop()
        self.start(channels)

    def process_tick(self):
        """One iteration of the slow loop."""
        logger.debug("Running derived-metric processing...")
        self.calculator.process()

    def snapshot_tick(self):
        """One iteration of the fast loop."""
        snapshot = self.assembler.assemble(self.clock.now_ms())
        if snapshot is not None:
            self.outbox.submit(snapshot)

    def get_status(self) -> dict:
        """
        Return a summary of session state for logging / UI display.
        """
        return {
            'state'               : self.state,
            'session_id'          : str(self.session_id) if self.session_id else None,
            'active_channels'     : sorted(k.value for k in self._active_channels),
            'unavailable_channels': sorted(k.value for k in self._unavailable_channels),
            'ingest'              : self.ingest.get_status(),
            'outbox'              : self.outbox.get_status(),
            'coordinator'         : self.coordinator.get_coordinator_status(),
        }

    # -----------------------------------------------------------------------
    # Private helpers
    # -----------------------------------------------------------------------

    def _reset_state(self):
        """Clear windows, latest record, derived cache and simulation."""
        self.ingest.reset()
        self.derived.reset()
        self.simulation.reset()
        self.outbox.clear()
        self._unavailable_channels.clear()

    def _subscribe(self, kind: ChannelKind):
        """Subscribe one channel; failures mark it unavailable for the session."""
        if kind in self._unavailable_channels:
            return

        try:
            self.source.subscribe(kind, self.ingest.on_data_received)
        except ValueError as e:
            logger.error(f"✗ FAILED (invalid channel): {kind.value}. Reason: {e}")
            self._handle_channel_failure(kind, e)
            return
        except NotImplementedError as e:
            logger.warning(f"⚠ SKIPPING (not supported): {kind.value}. Reason: {e}")
            self._handle_channel_failure(kind, e)
            return
        except Exception as e:
            logger.error(f"✗ FAILED (unknown): {kind.value}. Reason: {e}", exc_info=True)
            self._handle_channel_failure(kind, e)
            return

        self._active_channels.add(kind)
        self._log_channel_status(kind, 'active')
        logger.info(f"✓ Subscribed {kind.value}")

    def _handle_channel_failure(self, kind: ChannelKind, exc: Exception):
        self._unavailable_channels.add(kind)
        self._log_channel_status(kind, 'failed', notes=f"{type(exc).__name__}: {exc}")

    def _log_channel_status(self, kind: ChannelKind, status: str, notes: str = None):
        """
        Write a row to channel_status so every session has a record of
        which channels were live.
        """
        if self.db_session is None:
            return

        try:
            from .db.models import ChannelStatus

            record = ChannelStatus(
                status_id=uuid.uuid4(),
                session_id=self.session_id,
                channel=kind.value,
                status=status,
                recorded_at=datetime.now(timezone.utc),
                notes=notes,
            )
            self.db_session.add(record)
            self.db_session.commit()

        except Exception as e:
            # Don't let a logging failure cascade - just warn
            logger.warning(f"Could not write channel_status record for {kind.value}: {e}")
            self.db_session.rollback()

    # -----------------------------------------------------------------------
    # Dunder helpers
    # -----------------------------------------------------------------------

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def __repr__(self):
        return (
            f"<TrackingPipeline("
            f"state={self.state}, "
            f"channels={sorted(k.value for k in self._active_channels)})>"
        )
