from typing import Optional, Tuple

from fastapi import Depends, Header
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from session_service.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from session_service.api.error import to_http_error
from session_service.app.services.authentication_gate import (
    AuthContext,
    AuthenticationGate,
)
from session_service.app.services.session_lifecycle_service import (
    SessionLifecycleService,
)
from session_service.app.services.token_codec import TokenCodec
from session_service.app.services.unit_of_work import UnitOfWork
from session_service.domain.entities import UserRole
from session_service.libs.result import Error

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_token_codec() -> TokenCodec:
    return TokenCodec(
        ApplicationConfig.JWT_SECRET, ApplicationConfig.ACCESS_TOKEN_TTL_SECONDS
    )


def get_session_service(
    uow: UnitOfWork = Depends(get_unit_of_work),
    token_codec: TokenCodec = Depends(get_token_codec),
) -> SessionLifecycleService:
    return SessionLifecycleService(
        uow,
        token_codec,
        max_sessions=ApplicationConfig.MAX_SESSIONS_PER_USER,
        retention_days=ApplicationConfig.SESSION_RETENTION_DAYS,
        never_used_grace_hours=ApplicationConfig.NEVER_USED_GRACE_HOURS,
    )


def get_authentication_gate(
    uow: UnitOfWork = Depends(get_unit_of_work),
    token_codec: TokenCodec = Depends(get_token_codec),
) -> AuthenticationGate:
    return AuthenticationGate(uow, token_codec)


async def get_current_context(
    authorization: Optional[str] = Header(None),
    gate: AuthenticationGate = Depends(get_authentication_gate),
) -> AuthContext:
    """
    Dependency to resolve the bearer token in the Authorization header.

    Returns:
        AuthContext with the principal and the session id of the token

    Raises:
        ClientError: 401 if the token or its session is not usable
    """
    result = await gate.authenticate(authorization)
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


class RefreshRequest(BaseModel):
    """
    Refresh token HTTP request payload

    Validates incoming refresh request.
    """

    refresh_token: str = Field(..., description="Refresh token")


async def get_refresh_context(
    request: RefreshRequest,
    gate: AuthenticationGate = Depends(get_authentication_gate),
) -> Tuple[AuthContext, str]:
    """
    Refresh gate: only a current refresh token of an active session passes.

    Returns:
        (AuthContext, refresh_token)
    """
    result = await gate.authenticate_refresh(request.refresh_token)
    if result.is_err():
        raise to_http_error(result.error)
    return result.value, request.refresh_token


def require_roles(*roles: UserRole):
    """
    Build a dependency that admits only principals holding one of roles.

    Raises:
        ClientError: 401 without a principal (via get_current_context),
            403 when the principal's role is not allowed
    """
    allowed = {UserRole(role) for role in roles}

    async def role_gate(
        context: AuthContext = Depends(get_current_context),
    ) -> AuthContext:
        if context.principal.role not in allowed:
            raise to_http_error(
                Error("FORBIDDEN", "You do not have permission to perform this action")
            )
        return context

    return role_gate
