"""
Session Service Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    UserRole,
    TokenKind,
    SessionResolutionStatus,
)

# Export all entities
from .user import User
from .session import Session
from .principal import Principal

__all__ = [
    # Enums
    "UserRole",
    "TokenKind",
    "SessionResolutionStatus",
    # Entities
    "User",
    "Session",
    # Value objects
    "Principal",
]
