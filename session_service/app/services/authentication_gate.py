"""
Authentication Gate

Request-time resolution of a bearer token to a principal.

A token is accepted only when its signature and expiry are valid AND it is
the current token of an active, unexpired session. The session check is what
makes logout, eviction and rotation effective against otherwise valid tokens.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from session_service.app.services.token_codec import (
    InvalidTokenError,
    TokenClaims,
    TokenCodec,
    TokenExpiredError,
)
from session_service.app.services.unit_of_work import UnitOfWork
from session_service.domain.base import utcnow
from session_service.domain.entities import (
    Principal,
    SessionResolutionStatus,
    TokenKind,
)
from session_service.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """Resolved identity of the current request"""

    principal: Principal
    session_id: UUID


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token of an "Authorization: Bearer <token>" header, else None"""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return token


class AuthenticationGate:
    """
    Gate for access tokens (API calls) and refresh tokens (refresh endpoint).

    Business Rules:
    - Missing/malformed header, bad signature and expiry are distinct errors
    - Refresh tokens never authorize API calls, access tokens never refresh
    - Expired sessions are deactivated when encountered
    - Every accepted access token updates the session's last_used_at
    """

    def __init__(self, uow: UnitOfWork, token_codec: TokenCodec):
        self.uow = uow
        self.token_codec = token_codec

    async def authenticate(self, authorization: Optional[str]) -> Result[AuthContext]:
        """
        Resolve an Authorization header to the calling principal.

        Args:
            authorization: Raw Authorization header value

        Returns:
            Result with AuthContext, or Error (all map to 401)
        """
        token = extract_bearer_token(authorization)
        if token is None:
            return Return.err(
                Error(
                    "TOKEN_MISSING",
                    "Not logged in. Please log in to access this resource.",
                )
            )

        try:
            claims = self.token_codec.decode(token)
        except TokenExpiredError:
            return Return.err(
                Error("TOKEN_EXPIRED", "Your token has expired. Please refresh or log in again.")
            )
        except InvalidTokenError:
            return Return.err(
                Error("TOKEN_INVALID", "Invalid token. Please log in again.")
            )

        if claims.kind == TokenKind.refresh:
            return Return.err(
                Error(
                    "TOKEN_WRONG_KIND",
                    "Invalid token type. Use an access token for this operation.",
                )
            )

        return await self._resolve_session(token, claims)

    async def authenticate_refresh(
        self, refresh_token: Optional[str]
    ) -> Result[AuthContext]:
        """
        Resolve a refresh token to its principal (refresh endpoint only).

        Does not touch last_used_at; the rotation itself records the use.
        """
        if not refresh_token:
            return Return.err(Error("TOKEN_MISSING", "Refresh token not provided."))

        try:
            claims = self.token_codec.decode(refresh_token)
        except TokenExpiredError:
            await self._retire_expired_refresh(refresh_token)
            return Return.err(Error("TOKEN_EXPIRED", "The refresh token has expired."))
        except InvalidTokenError:
            return Return.err(Error("TOKEN_INVALID", "Invalid token."))

        if claims.kind != TokenKind.refresh:
            return Return.err(
                Error("TOKEN_WRONG_KIND", "Invalid token. A refresh token is required.")
            )

        return await self._resolve_session(refresh_token, claims)

    async def _retire_expired_refresh(self, refresh_token: str) -> None:
        """Deactivate the session behind an expired refresh token, if any"""
        async with self.uow:
            resolution = await self.uow.sessions.resolve_by_refresh_token(
                refresh_token, utcnow()
            )
            if resolution.status == SessionResolutionStatus.expired:
                logger.debug(f"Deactivated expired session {resolution.session.id}")
                await self.uow.commit()

    async def _resolve_session(
        self, token: str, claims: TokenClaims
    ) -> Result[AuthContext]:
        for_refresh = claims.kind == TokenKind.refresh

        async with self.uow:
            now = utcnow()
            if for_refresh:
                resolution = await self.uow.sessions.resolve_by_refresh_token(token, now)
            else:
                resolution = await self.uow.sessions.resolve_by_access_token(token, now)

            if not resolution.usable:
                logger.debug(
                    f"Rejected {claims.kind.value} token of user {claims.sub}: "
                    f"session {resolution.status.value}"
                )

            if resolution.status == SessionResolutionStatus.not_found:
                return Return.err(
                    Error("SESSION_INVALID", "Session not found. Please log in again.")
                )

            if resolution.status == SessionResolutionStatus.expired:
                # Persist the lazy deactivation before rejecting
                await self.uow.commit()
                return Return.err(
                    Error("SESSION_EXPIRED", "Session has expired. Please log in again.")
                )

            if resolution.status == SessionResolutionStatus.inactive:
                return Return.err(
                    Error(
                        "SESSION_INACTIVE",
                        "Session is no longer active. Please log in again.",
                    )
                )

            session = resolution.session
            user = await self.uow.users.get_by_id(session.user_id)
            if user is None:
                return Return.err(
                    Error(
                        "USER_NOT_FOUND",
                        "The user associated with this token no longer exists.",
                    )
                )

            if not for_refresh:
                await self.uow.sessions.touch_last_used(session.id, now)

            context = AuthContext(principal=Principal.from_user(user), session_id=session.id)
            await self.uow.commit()

        return Return.ok(context)
