# daily_timetable/db.py
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from daily_timetable.core.config import settings

Base = declarative_base()


def make_engine(database_url: str, **kwargs) -> Engine:
    """
    Build an engine for `database_url`.

    On Postgres every connection runs at READ COMMITTED; exclusive writes
    (override upsert, announce claim) are single conditional statements.
    """
    if database_url.startswith("postgresql"):
        kwargs.setdefault("isolation_level", "READ COMMITTED")
        kwargs.setdefault("pool_size", settings.DB_POOL_SIZE)
        kwargs.setdefault("max_overflow", settings.DB_MAX_OVERFLOW)
        kwargs.setdefault("pool_recycle", settings.DB_POOL_RECYCLE_SECONDS)
        kwargs.setdefault("pool_pre_ping", True)

    return create_engine(database_url, future=True, **kwargs)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
    )


engine = make_engine(settings.DATABASE_URL)

SessionLocal = make_session_factory(engine)


@contextmanager
def transaction(session_factory: sessionmaker) -> Iterator[Session]:
    """
    One unit of work: commit when the block exits cleanly, roll back on
    any exception (including KeyboardInterrupt) and re-raise.
    """
    db = session_factory()
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
    finally:
        db.close()
