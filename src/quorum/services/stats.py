"""Periodic statistics rollup.

Every interval the worker saves today's platform totals, one row per active
user, and prunes rows older than the retention window. Saving is idempotent
per date, so re-running within the same day overwrites rather than appends.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quorum.core.exceptions import QuorumError
from quorum.core.settings import settings
from quorum.db.session import SessionLocal
from quorum.db.time import utctoday
from quorum.repositories.store import ContentStore

logger = logging.getLogger(__name__)


def run_stats_rollup(session: Session, day: date | None = None, retention_days: int | None = None) -> int:
    """Save global and per-user stats for ``day``; return the number of users saved."""
    day = day or utctoday()
    retention = settings.stats_retention_days if retention_days is None else retention_days
    store = ContentStore(session)

    store.save_global_stats(day)
    users = store.get_users()
    for user in users:
        store.save_user_stats(user, day)
    removed = store.clean_stats(retention, day)
    logger.info(
        "Saved statistics for %s: %d users, %d expired rows removed", day, len(users), removed
    )
    return len(users)


class StatsWorker:
    """Runs :func:`run_stats_rollup` in the background at a fixed interval."""

    def __init__(self, db_session: Session | None = None, interval: float | None = None) -> None:
        self._db_session = db_session
        self.interval = max(
            0.1, float(settings.stats_interval_seconds if interval is None else interval)
        )
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background rollup loop."""
        if not self.running:
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background rollup loop."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.to_thread(self.run_once)
            except (SQLAlchemyError, QuorumError) as e:
                logger.error("StatsWorker rollup failed: %s", e, exc_info=True)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except TimeoutError:
                continue

    def run_once(self, day: date | None = None) -> int:
        if self._db_session is not None:
            return run_stats_rollup(self._db_session, day)
        with SessionLocal() as db:
            return run_stats_rollup(db, day)
