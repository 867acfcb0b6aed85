"""
Session Lifecycle Service

Login, refresh (rotation), logout and session introspection.
"""

import logging
from typing import List, Optional
from uuid import UUID

from session_service.app.services.dtos import (
    DeviceInfo,
    LoginResponse,
    LogoutResponse,
    RefreshTokenResponse,
    SessionSummary,
    UserProfile,
)
from session_service.app.services.password_hasher import (
    burn_verification_time,
    hash_password,
    needs_upgrade,
    verify_password,
)
from session_service.app.services.session_governor import (
    DEFAULT_NEVER_USED_GRACE_HOURS,
    DEFAULT_RETENTION_DAYS,
    SessionGovernor,
)
from session_service.app.services.token_codec import (
    InvalidTokenError,
    TokenCodec,
    TokenExpiredError,
)
from session_service.app.services.unit_of_work import UnitOfWork
from session_service.domain.base import utcnow
from session_service.domain.entities import (
    Principal,
    Session,
    SessionResolutionStatus,
    TokenKind,
)
from session_service.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 5

INVALID_CREDENTIALS = Error("INVALID_CREDENTIALS", "Invalid email or password")
REFRESH_TOKEN_INVALID = Error("REFRESH_TOKEN_INVALID", "Invalid refresh token")
REFRESH_TOKEN_EXPIRED = Error(
    "REFRESH_TOKEN_EXPIRED", "Refresh token has expired. Please log in again."
)


class SessionLifecycleService:
    """
    Orchestrates the lifecycle of user sessions.

    Business Rules:
    - Login failures are opaque: unknown email, missing password and wrong
      password all yield INVALID_CREDENTIALS
    - Legacy password hashes are accepted and upgraded after a successful login
    - A best-effort sweep runs before each login; its errors never fail the login
    - Each login caps the user's sessions to N-1 before inserting, so the newest
      login always succeeds and displaces the least recently used session
    - Refresh rotates both tokens in place; the previous pair stops resolving
    """

    def __init__(
        self,
        uow: UnitOfWork,
        token_codec: TokenCodec,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        never_used_grace_hours: int = DEFAULT_NEVER_USED_GRACE_HOURS,
    ):
        self.uow = uow
        self.token_codec = token_codec
        self.max_sessions = max_sessions
        self.governor = SessionGovernor(uow, retention_days, never_used_grace_hours)

    async def login(
        self, email: str, password: str, device: Optional[DeviceInfo] = None
    ) -> Result[LoginResponse]:
        """
        Verify credentials and open a new session.

        Args:
            email: User email (any case)
            password: Plain text password
            device: Optional provenance metadata for the new session

        Returns:
            Result with LoginResponse containing both tokens and the session id
        """
        normalized_email = email.strip().lower()

        async with self.uow:
            user = await self.uow.users.get_by_email(normalized_email)

            if user is None or not user.password_hash:
                # Keep timing comparable to a real password check
                burn_verification_time()
                return Return.err(INVALID_CREDENTIALS)

            if not verify_password(password, user.password_hash):
                return Return.err(INVALID_CREDENTIALS)

            if needs_upgrade(user.password_hash):
                user.password_hash = hash_password(password)
                user.updated_at = utcnow()
                await self.uow.users.update(user)
                await self.uow.commit()
                logger.info(f"Upgraded password hash scheme for user {user.id}")

            principal = Principal.from_user(user)

        await self._sweep_best_effort()

        device = device or DeviceInfo()
        async with self.uow:
            await self.governor.cap_sessions(principal.id, self.max_sessions - 1)

            pair = self.token_codec.issue_pair(principal)
            session = Session(
                user_id=principal.id,
                access_token=pair.access_token,
                refresh_token=pair.refresh_token,
                expires_at=pair.expires_at,
                refresh_expires_at=pair.refresh_expires_at,
                device_info=device.device_info,
                device_name=device.device_name,
                device_type=device.device_type,
                ip_address=device.ip_address,
                user_agent=device.user_agent,
            )
            await self.uow.sessions.create(session)
            session_id = str(session.id)

            await self.uow.commit()

        logger.info(f"User {principal.id} logged in with session {session_id}")

        return Return.ok(
            LoginResponse(
                user=UserProfile.from_principal(principal),
                access_token=pair.access_token,
                refresh_token=pair.refresh_token,
                session_id=session_id,
            )
        )

    async def _sweep_best_effort(self) -> None:
        try:
            async with self.uow:
                await self.governor.sweep()
                await self.uow.commit()
        except Exception as exc:
            logger.warning(f"Session sweep failed, continuing login: {exc}", exc_info=True)

    async def refresh(self, refresh_token: str) -> Result[RefreshTokenResponse]:
        """
        Rotate the token pair of the session holding refresh_token.

        Args:
            refresh_token: The refresh token to verify and rotate

        Returns:
            Result with RefreshTokenResponse containing new tokens, or Error
        """
        async with self.uow:
            now = utcnow()
            resolution = await self.uow.sessions.resolve_by_refresh_token(
                refresh_token, now
            )

            if resolution.status == SessionResolutionStatus.not_found:
                return Return.err(REFRESH_TOKEN_INVALID)

            if resolution.status == SessionResolutionStatus.expired:
                # Persist the lazy deactivation
                await self.uow.commit()
                return Return.err(REFRESH_TOKEN_EXPIRED)

            if resolution.status == SessionResolutionStatus.inactive:
                return Return.err(
                    Error("SESSION_INACTIVE", "Session is no longer active")
                )

            session = resolution.session
            session_id = session.id

            try:
                claims = self.token_codec.decode(refresh_token)
            except TokenExpiredError:
                await self.uow.sessions.deactivate(session_id)
                await self.uow.commit()
                return Return.err(REFRESH_TOKEN_EXPIRED)
            except InvalidTokenError:
                return Return.err(REFRESH_TOKEN_INVALID)

            if claims.kind != TokenKind.refresh:
                return Return.err(
                    Error("TOKEN_WRONG_KIND", "A refresh token is required")
                )

            user = await self.uow.users.get_by_id(session.user_id)
            if user is None:
                await self.uow.sessions.deactivate(session_id)
                await self.uow.commit()
                return Return.err(
                    Error(
                        "USER_NOT_FOUND",
                        "The user associated with this token no longer exists",
                    )
                )

            pair = self.token_codec.issue_pair(Principal.from_user(user))
            rotated = await self.uow.sessions.update_tokens(
                session_id,
                pair.access_token,
                pair.refresh_token,
                pair.expires_at,
                pair.refresh_expires_at,
                expected_refresh_token=refresh_token,
            )
            if not rotated:
                # Another request rotated this session first
                return Return.err(REFRESH_TOKEN_INVALID)

            await self.uow.sessions.touch_last_used(session_id, now)
            await self.uow.commit()

        logger.info(f"Rotated tokens for session {session_id}")

        return Return.ok(
            RefreshTokenResponse(
                access_token=pair.access_token,
                refresh_token=pair.refresh_token,
                session_id=str(session_id),
            )
        )

    async def logout(self, user_id: UUID) -> Result[LogoutResponse]:
        """Deactivate every session of a user"""
        async with self.uow:
            count = await self.uow.sessions.deactivate_all_for_user(user_id)
            await self.uow.commit()

        logger.info(f"Closed {count} session(s) for user {user_id}")

        return Return.ok(
            LogoutResponse(
                success=True,
                message=f"Closed {count} session(s)",
                revoked_count=count,
            )
        )

    async def logout_session(
        self,
        user_id: UUID,
        session_id: Optional[UUID] = None,
        access_token: Optional[str] = None,
        logout_all: bool = False,
    ) -> Result[LogoutResponse]:
        """
        Close one of the user's sessions, or all of them.

        Args:
            user_id: Owner of the session(s)
            session_id: Session to close
            access_token: Access token of the session to close
            logout_all: Close every session of the user (identifiers ignored)

        Returns:
            Result with LogoutResponse, or Error
            (SESSION_IDENTIFIER_REQUIRED, SESSION_NOT_FOUND)
        """
        if logout_all:
            return await self.logout(user_id)

        if (session_id is None) == (access_token is None):
            return Return.err(
                Error(
                    "SESSION_IDENTIFIER_REQUIRED",
                    "Provide exactly one of session_id or access_token",
                )
            )

        async with self.uow:
            if session_id is not None:
                session = await self.uow.sessions.get_by_id(session_id)
            else:
                session = await self.uow.sessions.find_by_access_token(access_token)

            # Sessions of other users are reported as missing
            if session is None or session.user_id != user_id:
                return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))

            if session_id is not None:
                count = 1 if await self.uow.sessions.deactivate(session.id) else 0
            else:
                count = await self.uow.sessions.deactivate_by_access_token(access_token)

            closed_id = session.id
            await self.uow.commit()

        logger.info(f"Closed session {closed_id} for user {user_id}")

        return Return.ok(
            LogoutResponse(success=True, message="Session closed", revoked_count=count)
        )

    async def list_active_sessions(
        self, user_id: UUID, current_session_id: Optional[UUID] = None
    ) -> Result[List[SessionSummary]]:
        """Active, refreshable sessions of a user, most recently used first, tokens redacted"""
        async with self.uow:
            now = utcnow()
            sessions = await self.uow.sessions.find_active_by_user_id(user_id)
            summaries = [
                SessionSummary.from_session(s, current_session_id)
                for s in reversed(sessions)
                if s.is_usable_for_refresh(now)
            ]

        return Return.ok(summaries)

    async def revoke_user_sessions(self, target_user_id: UUID) -> Result[LogoutResponse]:
        """Administrative logout of every session of another user"""
        async with self.uow:
            target_user = await self.uow.users.get_by_id(target_user_id)
            if target_user is None:
                return Return.err(Error("TARGET_USER_NOT_FOUND", "User not found"))

        return await self.logout(target_user_id)
