"""
Session Entity

One row per logical login, holding the current token pair.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from session_service.domain.base import utcnow


class Session(SQLModel, table=True):
    """
    Session entity - durable record of a login.

    Business Rules:
    - access_token and refresh_token are unique across all rows
    - Tokens rotate in place on refresh; id and created_at never change
    - Usable for API calls iff is_active and now < expires_at
    - Usable for refresh iff is_active and now < refresh_expires_at
    - Deactivated rows are kept until an explicit purge
    - Device metadata is written once at creation
    """

    __tablename__ = "user_sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)

    access_token: str = Field(unique=True, index=True, max_length=2048)
    refresh_token: str = Field(unique=True, index=True, max_length=2048)

    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    refresh_expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    last_used_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )

    is_active: bool = Field(default=True)

    # Provenance
    device_info: Optional[str] = Field(default=None, max_length=255)
    device_name: Optional[str] = Field(default=None, max_length=255)
    device_type: Optional[str] = Field(default=None, max_length=50)
    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None, max_length=512)

    # Timestamps
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )

    __table_args__ = (
        Index("idx_session_user_active", "user_id", "is_active"),
        Index("idx_session_refresh_expires_at", "refresh_expires_at"),
        Index("idx_session_active_updated", "is_active", "updated_at"),
    )

    def is_usable_for_refresh(self, now: datetime) -> bool:
        return self.is_active and now < self.refresh_expires_at
