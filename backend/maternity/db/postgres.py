"""
Database connection via SQLAlchemy.

PostgreSQL (psycopg3) is the system of record; any other SQLAlchemy URL
set through DATABASE_URL is passed through unchanged.
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, scoped_session, declarative_base

from maternity.config import config

logger = logging.getLogger("db.postgres")

# SQLAlchemy base for model declarations
Base = declarative_base()

# Engine and session factory (initialized lazily)
_engine = None
_session_factory = None


def get_engine():
    """Get or create the SQLAlchemy engine."""
    global _engine
    if _engine is None:
        db_url = config.get_database_url()
        options = {"echo": config.DEBUG}  # Log SQL in debug mode
        if db_url.startswith("postgresql://"):
            # Use psycopg3 dialect
            db_url = db_url.replace("postgresql://", "postgresql+psycopg://")
            options.update(
                pool_pre_ping=True,  # Verify connections before use
                pool_recycle=300,  # Recycle connections every 5 minutes
                pool_reset_on_return="rollback",
            )
        _engine = create_engine(db_url, **options)
        logger.info(f"Database engine created ({_engine.url.get_backend_name()})")

    return _engine


def get_db_session():
    """Get a scoped database session.

    Returns the thread-local session from the scoped session factory.
    The session is cleaned up at the end of each request via close_db_session().
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = scoped_session(
            sessionmaker(bind=get_engine(), autocommit=False, autoflush=False)
        )

    return _session_factory()


def init_db():
    """Initialize database tables (for development/testing)."""
    # Import models so they register with Base.metadata
    from maternity import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def close_db_session(exception=None):
    """Remove the current session (call at end of request).

    Always rollback so the next request starts clean, then remove the
    session from the registry.
    """
    if _session_factory is None:
        return
    try:
        _session_factory.rollback()
    except SQLAlchemyError as e:
        logger.warning(f"Rollback on teardown failed: {e}")
    finally:
        _session_factory.remove()


def rollback_session():
    """Explicitly rollback the current session.

    Called at the start of a request in case a previous request left
    the session dirty.
    """
    if _session_factory is None:
        return
    try:
        session = _session_factory()
        if session.is_active:
            session.rollback()
    except SQLAlchemyError as e:
        logger.warning(f"Discarding session after failed rollback: {e}")
        _session_factory.remove()
