import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

logger = logging.getLogger(__name__)


class Database:
    """Persistence context: owns the engine and hands out sessions.

    Built once by the application factory and kept on ``app.state.db``;
    repositories receive sessions from it through request dependencies.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs = {}

        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # In-memory databases live on a single shared connection
                engine_kwargs["poolclass"] = StaticPool
        else:
            # Better resiliency for managed Postgres
            engine_kwargs.update({
                "pool_pre_ping": True,
                "pool_recycle": 300,
                "pool_size": 5,
                "max_overflow": 10,
            })

        self.engine = create_engine(url, echo=echo, **engine_kwargs)

    def create_db_and_tables(self) -> None:
        # Register table metadata before create_all
        from . import models  # noqa: F401

        SQLModel.metadata.create_all(self.engine)
        logger.info("Database tables ensured")

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.exec_driver_sql("SELECT 1")
            return True
        except Exception:
            logger.exception("Database ping failed")
            return False

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine) as session:
            yield session

    def dispose(self) -> None:
        self.engine.dispose()


def get_session(request: Request) -> Iterator[Session]:
    db: Database = request.app.state.db
    with db.session() as session:
        yield session
