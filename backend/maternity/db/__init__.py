"""
Database connections for the maternity backend (via SQLAlchemy).
"""

from .postgres import Base, init_db, get_db_session, close_db_session, rollback_session

__all__ = [
    "Base",
    "init_db",
    "get_db_session",
    "close_db_session",
    "rollback_session",
]
