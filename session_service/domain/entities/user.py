"""
User Entity

Represents a principal that can hold many concurrent sessions.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from session_service.domain.base import utcnow
from .enums import UserRole


class User(SQLModel, table=True):
    """
    User entity - the owner of sessions.

    Business Rules:
    - Email is stored lower-cased and is unique
    - password_hash may be empty for accounts that cannot log in with a password
    - password_hash may use a legacy scheme until the next successful login
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    name: str = Field(default="", max_length=255)
    role: UserRole = Field(default=UserRole.user)
    password_hash: Optional[str] = Field(default=None, max_length=255)

    # Timestamps
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )
