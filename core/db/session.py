import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.db.base import Base
from core.exceptions import Conflict, InternalError

logger = logging.getLogger(__name__)


def init_engine(db_url: str) -> Engine:
    if db_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases must share one connection across sessions
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(db_url, **kwargs)
    return create_engine(db_url, pool_pre_ping=True, pool_size=10, max_overflow=20)


class Database:
    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    def session(self) -> Session:
        return self._session_factory()

    def create_all(self):
        import models  # noqa: F401  registers every table on Base.metadata

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables ensured")


def commit(db: Session, action: str, conflict_message: Optional[str] = None) -> None:
    """Commit, translating driver errors into application errors."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if conflict_message:
            raise Conflict(conflict_message) from exc
        logger.exception("Integrity error while %s", action)
        raise InternalError() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database error while %s", action)
        raise InternalError() from exc
