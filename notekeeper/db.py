from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, create_engine

from .config import get_settings

log = logging.getLogger(__name__)

_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None  # swap the engine when the configured URL changes


def _compute_url() -> str:
    settings = get_settings()
    if not settings.database_url:
        settings.resolved_db_path.parent.mkdir(parents=True, exist_ok=True)
    return settings.sqlalchemy_url


def get_engine() -> Engine:
    global _ENGINE, _ENGINE_URL
    url = _compute_url()
    if _ENGINE is None or _ENGINE_URL != url:
        if _ENGINE is not None:
            _ENGINE.dispose()
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        _ENGINE = create_engine(url, echo=get_settings().echo_sql, connect_args=connect_args)
        _ENGINE_URL = url
        log.debug("engine created for %s", url)
    return _ENGINE


def reset_engine() -> None:
    """For tests: drop the cached engine and settings so a new NOTEKEEPER_DB_PATH is picked up."""
    global _ENGINE, _ENGINE_URL
    get_settings.cache_clear()
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None


def init_db() -> None:
    from . import models  # noqa: F401  registers the notes table

    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    log.info("database ready at %s", engine.url)


def check_connection() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        log.exception("database connection check failed")
        return False


def get_session() -> Session:
    # keep objects alive after commit so returned models retain values
    return Session(get_engine(), expire_on_commit=False)


@contextmanager
def session_scope() -> Iterator[Session]:
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db_session() -> Iterator[Session]:
    """FastAPI dependency: one session per request."""
    with session_scope() as session:
        yield session
