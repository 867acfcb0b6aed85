"""
Principal

The authenticated identity attached to a request once a token resolves.
"""

from uuid import UUID

from pydantic import BaseModel

from .enums import UserRole
from .user import User


class Principal(BaseModel):
    """Identity claims shared by tokens, gates and responses (no secrets)"""

    id: UUID
    email: str
    name: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)
