import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from inventory_api.core.config import Settings
from inventory_api.models.base import Base


logger = logging.getLogger(__name__)


class Database:
    """Process-wide store client: one engine (connection pool) and its session factory.

    Built once by ``create_app`` and disposed when the application shuts down.
    """

    def __init__(self, settings: Settings):
        self.url = settings.database_url
        self.engine = create_engine(
            self.url,
            pool_pre_ping=True,
            connect_args=_connect_args(self.url, settings.database_timeout_seconds),
        )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def create_all(self) -> None:
        # Create tables in dev/test without running Alembic
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        logger.info("Closing database connection pool")
        self.engine.dispose()


def _connect_args(url: str, timeout_seconds: int) -> dict:
    if url.startswith("sqlite"):
        # Requests are served from a threadpool; SQLite waits up to `timeout` on a locked file
        return {"check_same_thread": False, "timeout": timeout_seconds}
    if url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={timeout_seconds * 1000}"}
    return {}


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
