"""
Token Codec

Issues and verifies the signed bearer tokens carried by every session.

Tokens are self-describing (signature and expiry can be checked without
storage) but they do not grant access on their own: every gate must also find
the token on an active session row, which is what makes logout effective.
"""

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from session_service.domain.entities import Principal, TokenKind, UserRole

ALGORITHM = "HS256"

# Refresh lifetime is fixed regardless of the access-token configuration
REFRESH_TOKEN_TTL = timedelta(days=30)


class TokenError(Exception):
    """Base class for token decoding failures"""


class InvalidTokenError(TokenError):
    """Malformed token or signature mismatch"""


class TokenExpiredError(TokenError):
    """Signature is valid but the token is past its expiry"""


class TokenClaims(BaseModel):
    """Decoded claims of a verified token"""

    sub: str
    email: str
    name: str
    role: UserRole
    kind: TokenKind
    iat: int
    exp: int
    jti: str

    @property
    def principal(self) -> Principal:
        return Principal(
            id=UUID(self.sub), email=self.email, name=self.name, role=self.role
        )


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_at: datetime
    refresh_expires_at: datetime


def _to_naive_utc(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp, UTC).replace(tzinfo=None)


class TokenCodec:
    """HS256 encoder/decoder bound to a process-wide secret"""

    def __init__(self, secret: str, access_token_ttl_seconds: int):
        self.secret = secret
        self.access_token_ttl_seconds = access_token_ttl_seconds

    def issue(
        self,
        principal: Principal,
        kind: TokenKind,
        ttl_seconds: int,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Issue a signed token.

        Args:
            principal: Identity to embed
            kind: access or refresh
            ttl_seconds: Lifetime; 0 yields a token that is already expired
            now: Issue instant (aware UTC), defaults to the current time

        Returns:
            JWT string (HS256)
        """
        issued_at = int((now or datetime.now(UTC)).timestamp())
        payload = {
            "sub": str(principal.id),
            "email": principal.email,
            "name": principal.name,
            "role": principal.role.value,
            "kind": kind.value,
            "iat": issued_at,
            "exp": issued_at + int(ttl_seconds),
            # Random id keeps tokens unique even when issued in the same second
            "jti": secrets.token_hex(16),
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def issue_pair(self, principal: Principal) -> TokenPair:
        """Issue an access token (configured TTL) and a refresh token (30 days)"""
        now = datetime.now(UTC)
        access_token = self.issue(
            principal, TokenKind.access, self.access_token_ttl_seconds, now
        )
        refresh_ttl = int(REFRESH_TOKEN_TTL.total_seconds())
        refresh_token = self.issue(principal, TokenKind.refresh, refresh_ttl, now)

        issued_at = int(now.timestamp())
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=_to_naive_utc(issued_at + self.access_token_ttl_seconds),
            refresh_expires_at=_to_naive_utc(issued_at + refresh_ttl),
        )

    def decode(self, token: str) -> TokenClaims:
        """
        Verify signature, then expiry.

        Raises:
            InvalidTokenError: Malformed token, bad signature or bad claims
            TokenExpiredError: now >= exp
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={"verify_exp": False},
            )
            claims = TokenClaims(**payload)
        except (JWTError, ValidationError, TypeError) as exc:
            raise InvalidTokenError("Invalid token") from exc

        if claims.exp <= datetime.now(UTC).timestamp():
            raise TokenExpiredError("Token has expired")

        return claims
