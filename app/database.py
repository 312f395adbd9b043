from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """
    Owns the engine and session factory.
    Built once by the application factory; connect() at startup,
    disconnect() at shutdown.
    """

    def __init__(self, url: str, *, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker[Session]] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    def connect(self) -> None:
        if self._engine is not None:
            return
        connect_args = {"check_same_thread": False} if self.url.startswith("sqlite") else {}
        self._engine = create_engine(self.url, echo=self.echo, pool_pre_ping=True, connect_args=connect_args)
        self._sessionmaker = sessionmaker(bind=self._engine, autoflush=False, expire_on_commit=False)
        with self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Connected to database")

    def disconnect(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("Database connection closed")

    def create_all(self) -> None:
        # alembic owns the schema in deployments; tests and local dev use this
        import app.models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def new_session(self) -> Session:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not connected")
        return self._sessionmaker()

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.new_session()
        try:
            yield db
        finally:
            db.close()

    def health_check(self) -> dict:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {"ok": True}
        except Exception as e:
            logger.warning("Database health check failed: %s", e)
            return {"ok": False}


def get_db(request: Request) -> Iterator[Session]:
    database: Database = request.app.state.database
    with database.session() as db:
        yield db
