from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import bcrypt
import pytest

from session_service.app.services.token_codec import TokenCodec
from session_service.domain.base import utcnow
from session_service.domain.entities import Principal, Session, User, UserRole


@pytest.fixture
def mock_uow():
    """Mock UnitOfWork with the user and session repositories"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_id = AsyncMock(return_value=None)
    uow.users.update = AsyncMock()

    uow.sessions = MagicMock()
    uow.sessions.create = AsyncMock()
    uow.sessions.get_by_id = AsyncMock(return_value=None)
    uow.sessions.find_by_access_token = AsyncMock(return_value=None)
    uow.sessions.find_active_by_user_id = AsyncMock(return_value=[])
    uow.sessions.resolve_by_access_token = AsyncMock()
    uow.sessions.resolve_by_refresh_token = AsyncMock()
    uow.sessions.update_tokens = AsyncMock(return_value=True)
    uow.sessions.touch_last_used = AsyncMock()
    uow.sessions.deactivate = AsyncMock(return_value=True)
    uow.sessions.deactivate_many = AsyncMock(side_effect=lambda ids: len(list(ids)))
    uow.sessions.deactivate_all_for_user = AsyncMock(return_value=0)
    uow.sessions.deactivate_by_access_token = AsyncMock(return_value=1)
    uow.sessions.deactivate_expired = AsyncMock(return_value=0)
    uow.sessions.deactivate_idle = AsyncMock(return_value=0)
    uow.sessions.deactivate_never_used = AsyncMock(return_value=0)
    uow.sessions.purge_expired = AsyncMock(return_value=0)
    uow.sessions.purge_stale_inactive = AsyncMock(return_value=0)
    uow.sessions.purge_never_used = AsyncMock(return_value=0)
    uow.sessions.count_active = AsyncMock(return_value=0)
    uow.sessions.count_all = AsyncMock(return_value=0)

    return uow


@pytest.fixture
def token_codec():
    return TokenCodec("unit-test-secret", 3600)


@pytest.fixture
def user():
    # Low cost factor keeps the unit suite fast
    password_hash = bcrypt.hashpw(b"SecurePass123!", bcrypt.gensalt(4)).decode()
    return User(
        id=uuid4(),
        email="user@acme.com",
        name="Acme User",
        role=UserRole.user,
        password_hash=password_hash,
    )


@pytest.fixture
def principal(user):
    return Principal.from_user(user)


@pytest.fixture
def make_session():
    """Build an in-memory session row for a user"""

    def _make(user_id, access_token="access", refresh_token="refresh", **overrides):
        now = utcnow()
        fields = dict(
            id=uuid4(),
            user_id=user_id,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=now + timedelta(hours=1),
            refresh_expires_at=now + timedelta(days=30),
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        fields.update(overrides)
        return Session(**fields)

    return _make
