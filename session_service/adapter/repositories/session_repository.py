from datetime import datetime, timedelta
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from session_service.app.repositories.session_repository import (
    ISessionRepository,
    SessionResolution,
)
from session_service.domain.base import utcnow
from session_service.domain.entities import Session, SessionResolutionStatus


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, session_obj: Session) -> Session:
        """Persist a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        stmt = select(Session).where(Session.id == session_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def find_by_access_token(self, access_token: str) -> Optional[Session]:
        """Get session by its current access token (unique index)"""
        stmt = select(Session).where(Session.access_token == access_token)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def find_by_refresh_token(self, refresh_token: str) -> Optional[Session]:
        """Get session by its current refresh token (unique index)"""
        stmt = select(Session).where(Session.refresh_token == refresh_token)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def find_active_by_user_id(self, user_id: UUID) -> List[Session]:
        """Active sessions for a user, least recently used first"""
        # A session never used ranks by its creation time
        last_activity = func.coalesce(Session.last_used_at, Session.created_at)
        stmt = (
            select(Session)
            .where(Session.user_id == user_id, Session.is_active == True)
            .order_by(last_activity.asc(), Session.created_at.asc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def resolve_by_access_token(
        self, access_token: str, now: datetime
    ) -> SessionResolution:
        session_obj = await self.find_by_access_token(access_token)
        return await self._resolve(session_obj, now, for_refresh=False)

    async def resolve_by_refresh_token(
        self, refresh_token: str, now: datetime
    ) -> SessionResolution:
        session_obj = await self.find_by_refresh_token(refresh_token)
        return await self._resolve(session_obj, now, for_refresh=True)

    async def _resolve(
        self, session_obj: Optional[Session], now: datetime, for_refresh: bool
    ) -> SessionResolution:
        if session_obj is None:
            return SessionResolution(SessionResolutionStatus.not_found)

        if now >= session_obj.refresh_expires_at:
            # Lazy deactivation: finding an expired session retires it
            if session_obj.is_active:
                await self.deactivate(session_obj.id)
            return SessionResolution(SessionResolutionStatus.expired, session_obj)

        if not for_refresh and now >= session_obj.expires_at:
            # Only the access window closed; the row stays refreshable
            return SessionResolution(SessionResolutionStatus.expired, session_obj)

        if not session_obj.is_active:
            return SessionResolution(SessionResolutionStatus.inactive, session_obj)

        return SessionResolution(SessionResolutionStatus.usable, session_obj)

    async def update_tokens(
        self,
        session_id: UUID,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
        refresh_expires_at: datetime,
        expected_refresh_token: Optional[str] = None,
    ) -> bool:
        """Rotate the token pair in place (compare-and-swap when expected token given)"""
        conditions = [Session.id == session_id]
        if expected_refresh_token is not None:
            conditions.append(Session.refresh_token == expected_refresh_token)

        stmt = (
            update(Session)
            .where(*conditions)
            .values(
                access_token=access_token,
                refresh_token=refresh_token,
                expires_at=expires_at,
                refresh_expires_at=refresh_expires_at,
                updated_at=utcnow(),
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def touch_last_used(self, session_id: UUID, now: datetime) -> None:
        """Record a successful use of the session"""
        stmt = (
            update(Session)
            .where(Session.id == session_id)
            .values(last_used_at=now)
        )
        await self.session.execute(stmt)
        await self.session.flush()

    async def deactivate(self, session_id: UUID) -> bool:
        """Deactivate a specific session by ID"""
        count = await self._deactivate_where(Session.id == session_id)
        return count > 0

    async def deactivate_many(self, session_ids: Iterable[UUID]) -> int:
        """Deactivate the given sessions"""
        ids = list(session_ids)
        if not ids:
            return 0
        return await self._deactivate_where(Session.id.in_(ids))

    async def deactivate_all_for_user(self, user_id: UUID) -> int:
        """Deactivate all active sessions for a user"""
        return await self._deactivate_where(Session.user_id == user_id)

    async def deactivate_by_access_token(self, access_token: str) -> int:
        """Deactivate the session holding this access token"""
        return await self._deactivate_where(Session.access_token == access_token)

    async def deactivate_expired(self, now: datetime) -> int:
        """Deactivate active sessions whose refresh window has closed"""
        return await self._deactivate_where(Session.refresh_expires_at <= now)

    async def deactivate_idle(self, older_than_days: int, now: datetime) -> int:
        """Deactivate active sessions last used before the retention cutoff"""
        cutoff = now - timedelta(days=older_than_days)
        return await self._deactivate_where(
            Session.last_used_at.is_not(None), Session.last_used_at < cutoff
        )

    async def deactivate_never_used(self, older_than_hours: int, now: datetime) -> int:
        """Deactivate active sessions that were never used within the grace period"""
        cutoff = now - timedelta(hours=older_than_hours)
        return await self._deactivate_where(
            Session.last_used_at.is_(None), Session.created_at < cutoff
        )

    async def _deactivate_where(self, *conditions) -> int:
        stmt = (
            update(Session)
            .where(Session.is_active == True, *conditions)
            .values(is_active=False, updated_at=utcnow())
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def purge_expired(self, now: datetime) -> int:
        """Delete sessions whose refresh window has closed"""
        return await self._delete_where(Session.refresh_expires_at <= now)

    async def purge_stale_inactive(self, older_than_days: int, now: datetime) -> int:
        """Delete sessions deactivated before the retention cutoff"""
        cutoff = now - timedelta(days=older_than_days)
        return await self._delete_where(
            Session.is_active == False, Session.updated_at < cutoff
        )

    async def purge_never_used(self, older_than_hours: int, now: datetime) -> int:
        """Delete sessions never used within the grace period"""
        cutoff = now - timedelta(hours=older_than_hours)
        return await self._delete_where(
            Session.last_used_at.is_(None), Session.created_at < cutoff
        )

    async def _delete_where(self, *conditions) -> int:
        stmt = delete(Session).where(*conditions)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def count_active(self) -> int:
        stmt = select(func.count(Session.id)).where(Session.is_active == True)
        result = await self.session.exec(stmt)
        return result.one()

    async def count_all(self) -> int:
        stmt = select(func.count(Session.id))
        result = await self.session.exec(stmt)
        return result.one()
