# ABOUTME: Database session management for SQLAlchemy.
# ABOUTME: Provides engine and session factory, a commit/rollback context manager, and table creation.

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from fedbiz_brief.config import Settings, get_settings
from fedbiz_brief.db.models import Base
from fedbiz_brief.errors import PersistenceError

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_engine(settings: Settings | None = None) -> Engine:
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        settings = settings or get_settings()
        _engine = create_engine(settings.database_url, echo=settings.db_echo)
    return _engine


def get_session_factory(settings: Settings | None = None) -> sessionmaker[Session]:
    """Get or create the session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            get_engine(settings),
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


@contextmanager
def get_session(settings: Settings | None = None) -> Iterator[Session]:
    """Context manager for database sessions with automatic commit/rollback.

    Usage:
        with get_session() as session:
            repo = BriefRepository(session)
    """
    factory = get_session_factory(settings)
    session = factory()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError(str(e)) from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(settings: Settings | None = None) -> None:
    """Create all tables if they don't exist."""
    try:
        Base.metadata.create_all(get_engine(settings))
    except SQLAlchemyError as e:
        raise PersistenceError(f"Cannot initialize database: {e}") from e


def close_db() -> None:
    """Dispose the engine and release connections."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
        _engine = None
        _session_factory = None
