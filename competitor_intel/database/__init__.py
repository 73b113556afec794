"""Persistence: SQLAlchemy models, session helpers, cache store and profile repository."""

from competitor_intel.database.session import Base, get_db_session, get_engine, get_session_factory, init_db

__all__ = ["Base", "get_db_session", "get_engine", "get_session_factory", "init_db"]
