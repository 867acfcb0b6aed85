"""
Session Governor

Enforces the per-user session cap and retires stale sessions.

Every method runs inside a unit of work the caller has already entered; the
caller decides when to commit.
"""

import logging
from dataclasses import asdict, dataclass
from uuid import UUID

from session_service.app.services.unit_of_work import UnitOfWork
from session_service.domain.base import utcnow

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30
DEFAULT_NEVER_USED_GRACE_HOURS = 24


@dataclass(frozen=True)
class SweepReport:
    """Per-criterion counts of a sweep or purge pass"""

    expired: int = 0
    inactive: int = 0
    never_used: int = 0

    @property
    def total(self) -> int:
        return self.expired + self.inactive + self.never_used

    def as_dict(self) -> dict:
        return {**asdict(self), "total": self.total}


@dataclass(frozen=True)
class SessionStats:
    active: int
    total: int

    @property
    def inactive(self) -> int:
        return self.total - self.active


class SessionGovernor:
    """
    Session cap and cleanup policy.

    Business Rules:
    - Cap keeps the most recently used sessions; the rest are evicted silently
    - Sweep only deactivates (is_active = false) and is idempotent
    - Purge hard-deletes and is reserved for explicit maintenance
    - The cap is a soft bound: concurrent logins may exceed it until the next cap
    """

    def __init__(
        self,
        uow: UnitOfWork,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        never_used_grace_hours: int = DEFAULT_NEVER_USED_GRACE_HOURS,
    ):
        self.uow = uow
        self.retention_days = retention_days
        self.never_used_grace_hours = never_used_grace_hours

    async def cap_sessions(self, user_id: UUID, max_kept: int) -> int:
        """
        Evict the least recently used active sessions until at most max_kept remain.

        Called with max_kept = N - 1 right before a login inserts its session,
        so the new session is never evicted by its own creation.

        Returns:
            Number of evicted sessions
        """
        active = await self.uow.sessions.find_active_by_user_id(user_id)
        overflow = len(active) - max(max_kept, 0)
        if overflow <= 0:
            return 0

        evicted_ids = [s.id for s in active[:overflow]]
        count = await self.uow.sessions.deactivate_many(evicted_ids)
        logger.info(f"Evicted {count} least recently used session(s) for user {user_id}")
        return count

    async def sweep(self) -> SweepReport:
        """Deactivate expired, idle and never-used sessions"""
        now = utcnow()
        report = SweepReport(
            expired=await self.uow.sessions.deactivate_expired(now),
            inactive=await self.uow.sessions.deactivate_idle(self.retention_days, now),
            never_used=await self.uow.sessions.deactivate_never_used(
                self.never_used_grace_hours, now
            ),
        )
        if report.total:
            logger.info(f"Session sweep deactivated {report.as_dict()}")
        return report

    async def purge(self) -> SweepReport:
        """Delete expired rows, rows inactive past retention and abandoned logins"""
        now = utcnow()
        report = SweepReport(
            expired=await self.uow.sessions.purge_expired(now),
            inactive=await self.uow.sessions.purge_stale_inactive(
                self.retention_days, now
            ),
            never_used=await self.uow.sessions.purge_never_used(
                self.never_used_grace_hours, now
            ),
        )
        if report.total:
            logger.info(f"Session purge deleted {report.as_dict()}")
        return report

    async def purge_expired_only(self) -> int:
        """Light cleanup: delete only rows whose refresh window has closed"""
        count = await self.uow.sessions.purge_expired(utcnow())
        if count:
            logger.info(f"Session purge deleted {count} expired session(s)")
        return count

    async def stats(self) -> SessionStats:
        return SessionStats(
            active=await self.uow.sessions.count_active(),
            total=await self.uow.sessions.count_all(),
        )
