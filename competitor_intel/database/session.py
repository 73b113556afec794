"""Database connection and session management."""

from contextlib import contextmanager
from typing import Optional

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from competitor_intel.config import PROJECT_ROOT, get_settings


Base = declarative_base()


def resolve_database_url(db_url: Optional[str] = None) -> str:
    """Resolve relative SQLite paths against the project root."""
    db_url = db_url or get_settings().database_url

    if db_url.startswith("sqlite:///") and not db_url.startswith("sqlite:////"):
        db_path = db_url.replace("sqlite:///", "")
        if db_path and db_path != ":memory:":
            full_path = PROJECT_ROOT / db_path
            full_path.parent.mkdir(parents=True, exist_ok=True)
            db_url = f"sqlite:///{full_path}"

    return db_url


def get_engine(db_url: Optional[str] = None):
    """Create database engine."""
    db_url = resolve_database_url(db_url)
    return create_engine(
        db_url,
        echo=False,
        connect_args={"check_same_thread": False} if "sqlite" in db_url else {}
    )


def get_session_factory(db_url: Optional[str] = None) -> sessionmaker:
    """Create session factory."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine(db_url))


@contextmanager
def get_db_session(session_factory: Optional[sessionmaker] = None) -> Session:
    """Context manager for database sessions."""
    SessionLocal = session_factory or get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(db_url: Optional[str] = None):
    """Initialize the database (create all tables)."""
    # Register models with Base
    from competitor_intel.database import models  # noqa: F401

    engine = get_engine(db_url)
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized at: {}", engine.url)
    return engine
