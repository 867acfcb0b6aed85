"""
Session Service Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserRole(str, Enum):
    """Role carried in token claims and checked by role gates"""

    admin = "admin"
    professional = "professional"
    user = "user"


class TokenKind(str, Enum):
    """Discriminator embedded in every signed token"""

    access = "access"
    refresh = "refresh"


class SessionResolutionStatus(str, Enum):
    """Outcome of resolving a session from a presented token"""

    usable = "usable"
    not_found = "not_found"
    inactive = "inactive"
    expired = "expired"
