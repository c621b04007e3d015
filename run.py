"""
VitalStream - Bench Runner
Runs a tracking session against the synthetic sensor source:
  1. Connect the sensor source
  2. Start the tracking pipeline (both loops)
  3. Print one JSON message per snapshot to stdout
     (and optionally store snapshots in a database)
  4. Stop after --duration seconds, or on Ctrl+C / SIGTERM

Usage:
    python run.py                                  # all channels, 30s
    python run.py --duration 60 --high-rate
    python run.py --channels ppg heart_rate        # others simulated/defaulted
    python run.py --unsupported eda --db-url sqlite:///snapshots.db
"""

import sys
import signal
import random
import argparse
import logging
import threading
import uuid

from vitalstream import ChannelKind, SyntheticSensorSource, TrackingConfig, TrackingPipeline
from vitalstream.exceptions import SessionStartError
from vitalstream.transport import FanoutSink, StreamSink

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    stream=sys.stderr,
)
logger = logging.getLogger('vitalstream')

CHANNEL_CHOICES = [kind.value for kind in ChannelKind]


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='VitalStream bench runner')
    parser.add_argument('--duration', type=float, default=30.0,
                        help='Seconds to run before stopping (default: 30)')
    parser.add_argument('--channels', nargs='+', choices=CHANNEL_CHOICES, default=CHANNEL_CHOICES,
                        help='Channels to subscribe')
    parser.add_argument('--unsupported', nargs='*', choices=CHANNEL_CHOICES, default=[],
                        help='Channels the synthetic device refuses to provide')
    parser.add_argument('--high-rate', action='store_true',
                        help='Emit snapshots every 40 ms instead of every second')
    parser.add_argument('--db-url', default=None,
                        help='Also store snapshots in this database (SQLAlchemy URL)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for the synthetic source and simulation')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    config = TrackingConfig.for_high_rate() if args.high_rate else TrackingConfig.for_session()
    source = SyntheticSensorSource(
        unsupported=[ChannelKind(c) for c in args.unsupported],
        seed=args.seed,
    )
    source.connect()

    stream_sink = StreamSink(sys.stdout)
    sink = stream_sink
    db_session = None
    db_sink = None
    session_id = uuid.uuid4()

    if args.db_url:
        from vitalstream.db import DatabaseSink, get_db_connection

        _, db_session = get_db_connection(args.db_url)
        db_sink = DatabaseSink(db_session, session_id=session_id)
        sink = FanoutSink(db_sink, stream_sink)

    pipeline = TrackingPipeline(
        source,
        sink,
        config=config,
        rng=random.Random(args.seed),
        db_session=db_session,
    )

    done = threading.Event()

    def shutdown(signum, frame):
        logger.info("Shutdown signal received - stopping pipeline...")
        done.set()

    signal.signal(signal.SIGTERM, shutdown)
    signal.signal(signal.SIGINT, shutdown)

    try:
        pipeline.start([ChannelKind(c) for c in args.channels], session_id=session_id)
    except SessionStartError as e:
        logger.error(f"✗ Could not start tracking: {e}")
        return 1

    done.wait(args.duration)

    status = pipeline.get_status()
    pipeline.stop()
    source.disconnect()

    if db_sink is not None:
        db_sink.flush()
        db_session.close()

    logger.info(f"Outbox: {status['outbox']}")
    logger.info(f"Ingest: {status['ingest']}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
