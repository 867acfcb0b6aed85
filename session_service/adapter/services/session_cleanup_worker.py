"""
Periodic Session Cleanup

Runs the governor's sweep and purge on a fixed interval in the background.
"""

import asyncio
import logging
from typing import Callable, Optional

from session_service.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from session_service.app.services.session_governor import (
    DEFAULT_NEVER_USED_GRACE_HOURS,
    DEFAULT_RETENTION_DAYS,
    SessionGovernor,
    SweepReport,
)

logger = logging.getLogger(__name__)


async def run_cleanup(
    session_factory: Callable,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    never_used_grace_hours: int = DEFAULT_NEVER_USED_GRACE_HOURS,
    full: bool = True,
) -> dict:
    """
    One cleanup pass in its own database session.

    full=True deactivates stale sessions and then purges old rows;
    full=False only deletes rows whose refresh window has closed.
    """
    async with session_factory() as db_session:
        uow = SqlAlchemyUnitOfWork(db_session)
        async with uow:
            governor = SessionGovernor(uow, retention_days, never_used_grace_hours)
            if full:
                swept = await governor.sweep()
                purged = await governor.purge()
            else:
                swept = SweepReport()
                purged = SweepReport(expired=await governor.purge_expired_only())
            await uow.commit()

    return {"deactivated": swept.as_dict(), "deleted": purged.as_dict()}


class SessionCleanupWorker:
    """Background ticker; a failed pass is logged and the loop keeps going"""

    def __init__(
        self,
        interval_hours: float,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        never_used_grace_hours: int = DEFAULT_NEVER_USED_GRACE_HOURS,
        session_factory: Optional[Callable] = None,
    ):
        self.interval_seconds = interval_hours * 3600
        self.retention_days = retention_days
        self.never_used_grace_hours = never_used_grace_hours
        self.session_factory = session_factory
        self.running = False
        self.run_count = 0
        self.error_count = 0
        self._task: Optional[asyncio.Task] = None

    def start(self):
        """Schedule the loop on the running event loop"""
        if self._task is not None:
            return
        self.running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(
            f"Starting {self.__class__.__name__} every {self.interval_seconds:.0f}s"
        )

    async def stop(self):
        """Stop the loop and wait for it to exit"""
        self.running = False
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"Stopping {self.__class__.__name__}")

    async def run_once(self) -> Optional[dict]:
        session_factory = self.session_factory
        if session_factory is None:
            from session_service.depends import AsyncSessionLocal

            session_factory = AsyncSessionLocal

        try:
            report = await run_cleanup(
                session_factory, self.retention_days, self.never_used_grace_hours
            )
        except Exception as e:
            logger.error(f"Session cleanup failed: {str(e)}")
            self.error_count += 1
            return None

        self.run_count += 1
        logger.info(f"Session cleanup finished: {report}")
        return report

    async def _loop(self):
        while self.running:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)
