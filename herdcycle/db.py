"""
Database engine, session factory and transaction helpers.
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from herdcycle.config import settings
from herdcycle.exceptions import HerdcycleError

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
    echo=settings.DB_ECHO,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)

Base = declarative_base()


def init_db(bind=None) -> None:
    # registers every mapped class on Base.metadata
    from herdcycle import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def get_db(session_factory=None) -> Iterator[Session]:
    """
    Open a session for one unit of work; commit on success, roll back on error.

    Used by the dashboard (one session per rerun) and the data scripts.
    """
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        # Domain errors are reported by the caller
        if not isinstance(e, HerdcycleError):
            logger.error(f"Database transaction error: {e}")
        raise
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run a multi-record write as one transaction.

    Either every change made inside the block is committed, or the session is
    rolled back and the original error propagates.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
