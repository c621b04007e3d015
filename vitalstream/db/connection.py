"""
Database connection helper
"""

import logging
from typing import Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)

DEFAULT_DB_URL = 'sqlite:///vitalstream.db'


def get_db_connection(url: str = DEFAULT_DB_URL, create_tables: bool = True) -> Tuple[Engine, Session]:
    """
    Connect to the snapshot database

    Args:
        url:           SQLAlchemy database URL
        create_tables: Create missing tables on connect

    Returns:
        (engine, session) tuple
    """
    kwargs = {}
    if url.startswith('sqlite'):
        # Snapshots are written from the loop thread
        kwargs['connect_args'] = {'check_same_thread': False}
        if ':memory:' in url or url in ('sqlite://', 'sqlite:///'):
            kwargs['poolclass'] = StaticPool

    engine = create_engine(url, **kwargs)
    if create_tables:
        Base.metadata.create_all(engine)

    session = sessionmaker(bind=engine)()
    logger.info(f"✓ Connected to {engine.url.render_as_string(hide_password=True)}")
    return engine, session
