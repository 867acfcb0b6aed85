from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from session_service.domain.entities import Session, SessionResolutionStatus


@dataclass(frozen=True)
class SessionResolution:
    """
    Result of resolving a presented token to its session row.

    Resolving is a read with a side effect: an expired session is deactivated
    by the same call that reports it.
    """

    status: SessionResolutionStatus
    session: Optional[Session] = None

    @property
    def usable(self) -> bool:
        return self.status == SessionResolutionStatus.usable


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Persist a new session"""
        pass

    @abstractmethod
    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        pass

    @abstractmethod
    async def find_by_access_token(self, access_token: str) -> Optional[Session]:
        """Get session by its current access token"""
        pass

    @abstractmethod
    async def find_by_refresh_token(self, refresh_token: str) -> Optional[Session]:
        """Get session by its current refresh token"""
        pass

    @abstractmethod
    async def find_active_by_user_id(self, user_id: UUID) -> List[Session]:
        """Active sessions for a user, least recently used first"""
        pass

    @abstractmethod
    async def resolve_by_access_token(
        self, access_token: str, now: datetime
    ) -> SessionResolution:
        """Resolve an access token; deactivates the session once its refresh window has closed"""
        pass

    @abstractmethod
    async def resolve_by_refresh_token(
        self, refresh_token: str, now: datetime
    ) -> SessionResolution:
        """Resolve a refresh token; deactivates the session if refresh has expired"""
        pass

    @abstractmethod
    async def update_tokens(
        self,
        session_id: UUID,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
        refresh_expires_at: datetime,
        expected_refresh_token: Optional[str] = None,
    ) -> bool:
        """
        Replace the token pair in place.

        With expected_refresh_token the write only applies if the row still
        holds that refresh token. Returns False when nothing was updated.
        """
        pass

    @abstractmethod
    async def touch_last_used(self, session_id: UUID, now: datetime) -> None:
        """Record a successful use of the session"""
        pass

    @abstractmethod
    async def deactivate(self, session_id: UUID) -> bool:
        """Deactivate one session. Returns True if an active row was changed."""
        pass

    @abstractmethod
    async def deactivate_many(self, session_ids: Iterable[UUID]) -> int:
        """Deactivate the given sessions. Returns count."""
        pass

    @abstractmethod
    async def deactivate_all_for_user(self, user_id: UUID) -> int:
        """Deactivate every active session of a user. Returns count."""
        pass

    @abstractmethod
    async def deactivate_by_access_token(self, access_token: str) -> int:
        """Deactivate the session holding this access token. Returns count."""
        pass

    @abstractmethod
    async def deactivate_expired(self, now: datetime) -> int:
        """Deactivate active sessions whose refresh window has closed"""
        pass

    @abstractmethod
    async def deactivate_idle(self, older_than_days: int, now: datetime) -> int:
        """Deactivate active sessions not used for longer than the retention window"""
        pass

    @abstractmethod
    async def deactivate_never_used(self, older_than_hours: int, now: datetime) -> int:
        """Deactivate active sessions created but never used past the grace period"""
        pass

    @abstractmethod
    async def purge_expired(self, now: datetime) -> int:
        """Delete sessions whose refresh window has closed"""
        pass

    @abstractmethod
    async def purge_stale_inactive(self, older_than_days: int, now: datetime) -> int:
        """Delete sessions deactivated longer ago than the retention window"""
        pass

    @abstractmethod
    async def purge_never_used(self, older_than_hours: int, now: datetime) -> int:
        """Delete sessions created but never used past the grace period"""
        pass

    @abstractmethod
    async def count_active(self) -> int:
        pass

    @abstractmethod
    async def count_all(self) -> int:
        pass
