from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.database import Database
from app.repositories.publications import PublicationRepository
from app.utils.timeutil import as_utc, utcnow

logger = logging.getLogger(__name__)


def fetch_due(db: Session, now: Optional[datetime] = None) -> list[int]:
    """Ids of SCHEDULED publications whose publish date has passed and that have media."""
    now = as_utc(now) if now else utcnow()
    return PublicationRepository(db).find_due_ids(now)


def publish_due(db: Session, now: Optional[datetime] = None) -> dict:
    due_ids = fetch_due(db, now)
    if not due_ids:
        return {"due": 0, "published": 0}

    published = PublicationRepository(db).bulk_publish(due_ids)
    logger.info("Scheduler published %d of %d due publications", published, len(due_ids))
    return {"due": len(due_ids), "published": published}


class PublicationScheduler:
    """
    Periodic sweep that promotes due SCHEDULED publications to PUBLISHED.
    One sweep at a time; a failed sweep is logged and the next tick runs as usual.
    """

    def __init__(
        self,
        database: Database,
        *,
        interval_seconds: float = 60.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.database = database
        self.interval_seconds = interval_seconds
        self.clock = clock
        self._task: Optional[asyncio.Task] = None
        self._stop: Optional[asyncio.Event] = None
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self) -> dict:
        with self.database.session() as db:
            return publish_due(db, self.clock())

    async def run_once(self) -> Optional[dict]:
        async with self._lock:
            try:
                return await asyncio.to_thread(self.sweep)
            except Exception:
                logger.exception("Scheduler sweep failed")
                return None

    async def _loop(self) -> None:
        assert self._stop is not None
        while not self._stop.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass

    def start(self) -> None:
        if self.running:
            return
        self._stop = asyncio.Event()
        self._task = asyncio.create_task(self._loop())
        logger.info("Publication scheduler started (every %ss)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        assert self._stop is not None
        self._stop.set()
        try:
            await self._task
        finally:
            self._task = None
            self._stop = None
        logger.info("Publication scheduler stopped")
