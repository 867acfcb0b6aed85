"""
Session Service DTOs (Data Transfer Objects)

Command and Response classes shared by the services and the API layer.
Raw password hashes never appear here; raw tokens only in the responses that
hand them to their owner.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from session_service.domain.entities import Principal, Session


# ============================================================================
# Command DTOs
# ============================================================================


class DeviceInfo(BaseModel):
    """Provenance metadata recorded once when a session is created"""

    device_info: Optional[str] = None
    device_name: Optional[str] = None
    device_type: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class UserProfile(BaseModel):
    """Public profile of the authenticated user"""

    id: str
    email: str
    name: str
    role: str

    @classmethod
    def from_principal(cls, principal: Principal) -> "UserProfile":
        return cls(
            id=str(principal.id),
            email=principal.email,
            name=principal.name,
            role=principal.role.value,
        )


class LoginResponse(BaseModel):
    """Response for login"""

    user: UserProfile
    access_token: str
    refresh_token: str
    session_id: str


class RefreshTokenResponse(BaseModel):
    """Response for token refresh"""

    access_token: str
    refresh_token: str
    session_id: str


class LogoutResponse(BaseModel):
    """Response for logout variants"""

    success: bool
    message: str
    revoked_count: int


class SessionSummary(BaseModel):
    """Session listing entry (tokens redacted)"""

    id: str
    device_info: Optional[str] = None
    device_name: Optional[str] = None
    device_type: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    last_used_at: Optional[datetime] = None
    expires_at: datetime
    is_current: bool

    @classmethod
    def from_session(
        cls, session: Session, current_session_id: Optional[UUID]
    ) -> "SessionSummary":
        return cls(
            id=str(session.id),
            device_info=session.device_info,
            device_name=session.device_name,
            device_type=session.device_type,
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            created_at=session.created_at,
            last_used_at=session.last_used_at,
            expires_at=session.expires_at,
            is_current=session.id == current_session_id,
        )
