# sponsor-tree/core/db.py
"""
Database access for tree snapshots.
Engines are cached per URL; the default URL comes from Config.DATABASE_URL.
"""
import logging
from contextlib import contextmanager
from typing import Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from config import Config
from models.base import Base

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///sponsor_tree.db"

# url -> (engine, session factory)
_engines: Dict[str, tuple] = {}


def _resolve_url(url: Optional[str]) -> str:
    return url or Config.get(Config.DATABASE_URL) or DEFAULT_DATABASE_URL


def get_engine(url: Optional[str] = None) -> Engine:
    """Engine for url (configured snapshot database when omitted)."""
    url = _resolve_url(url)
    cached = _engines.get(url)
    if cached is None:
        # SQLite connections may be handed between threads holding index.lock
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args)
        cached = (engine, sessionmaker(bind=engine))
        _engines[url] = cached
        logger.info(f"Snapshot database engine created: {engine.url}")
    return cached[0]


def get_session(url: Optional[str] = None) -> Session:
    get_engine(url)
    return _engines[_resolve_url(url)][1]()


@contextmanager
def get_db_session_ctx(url: Optional[str] = None):
    """
    Session that commits on success and rolls back on error.

    Usage:
        with get_db_session_ctx() as session:
            index = SnapshotStore(session).load()
    """
    session = get_session(url)
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Snapshot database error: {e}")
        raise
    finally:
        session.close()


def setup_database(url: Optional[str] = None) -> None:
    """Create the snapshot tables if they do not exist."""
    Base.metadata.create_all(get_engine(url))
    logger.info("Snapshot tables ready")


def reset_engine() -> None:
    """Dispose every cached engine (after DATABASE_URL changes)."""
    for engine, _ in _engines.values():
        engine.dispose()
    _engines.clear()
