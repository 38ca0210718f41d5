from __future__ import annotations

from contextlib import contextmanager
from collections.abc import Generator

from flask import Flask, current_app, g
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker


def _engine_options(db_url: str) -> dict[str, object]:
    options: dict[str, object] = {"pool_pre_ping": True}
    if db_url.startswith("postgres"):
        # gunicorn runs 2 workers; keep each pool small and recycle idle connections.
        options.update(pool_size=5, max_overflow=10, pool_recycle=1800, pool_timeout=30)
    return options


def init_db(app: Flask) -> None:
    db_url = app.config["DATABASE_URL"]
    engine = create_engine(db_url, **_engine_options(db_url))
    app.extensions["sqlalchemy_engine"] = engine
    app.extensions["sqlalchemy_sessionmaker"] = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def create_all(app: Flask) -> None:
    """Create every mapped table that does not exist yet (dev/test only; prod uses Alembic)."""
    from app.crm.models import Base

    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])


def db_session() -> Session:
    """Session bound to the current request; closed by teardown_db_session."""
    s: Session | None = g.get("db_session")
    if s is None:
        s = g.db_session = current_app.extensions["sqlalchemy_sessionmaker"]()
    return s


def teardown_db_session(_exc: BaseException | None) -> None:
    s: Session | None = g.pop("db_session", None)
    if s is not None:
        s.close()


@contextmanager
def session_scope(app: Flask) -> Generator[Session, None, None]:
    """Session outside a request (CLI, tests): commits on success, rolls back on error."""
    s: Session = app.extensions["sqlalchemy_sessionmaker"]()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
