from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from session_service.app.services.token_codec import (
    ALGORITHM,
    REFRESH_TOKEN_TTL,
    InvalidTokenError,
    TokenCodec,
    TokenExpiredError,
)
from session_service.domain.entities import TokenKind, UserRole


def _flip_signature(token: str) -> str:
    header, payload, signature = token.split(".")
    i = len(signature) // 2
    replacement = "A" if signature[i] != "A" else "B"
    return ".".join([header, payload, signature[:i] + replacement + signature[i + 1:]])


def test_issue_and_decode_carries_identity(token_codec, principal):
    token = token_codec.issue(principal, TokenKind.access, 60)

    claims = token_codec.decode(token)

    assert claims.kind == TokenKind.access
    assert claims.principal == principal
    assert claims.exp - claims.iat == 60


def test_issue_pair_uses_configured_access_ttl_and_fixed_refresh_ttl(token_codec, principal):
    pair = token_codec.issue_pair(principal)

    access = token_codec.decode(pair.access_token)
    refresh = token_codec.decode(pair.refresh_token)

    assert access.kind == TokenKind.access
    assert refresh.kind == TokenKind.refresh
    assert access.exp - access.iat == 3600
    assert refresh.exp - refresh.iat == int(REFRESH_TOKEN_TTL.total_seconds())
    assert pair.refresh_expires_at - pair.expires_at == REFRESH_TOKEN_TTL - timedelta(seconds=3600)
    assert pair.expires_at.tzinfo is None


def test_tokens_are_unique_within_the_same_second(token_codec, principal):
    now = datetime.now(UTC)
    tokens = {token_codec.issue(principal, TokenKind.access, 60, now) for _ in range(20)}

    assert len(tokens) == 20


def test_zero_ttl_token_is_already_expired(token_codec, principal):
    token = token_codec.issue(principal, TokenKind.access, 0)

    with pytest.raises(TokenExpiredError):
        token_codec.decode(token)


def test_token_issued_in_the_past_is_expired(token_codec, principal):
    past = datetime.now(UTC) - timedelta(hours=2)
    token = token_codec.issue(principal, TokenKind.refresh, 3600, now=past)

    with pytest.raises(TokenExpiredError):
        token_codec.decode(token)


def test_altered_signature_is_invalid(token_codec, principal):
    token = token_codec.issue(principal, TokenKind.access, 60)

    with pytest.raises(InvalidTokenError):
        token_codec.decode(_flip_signature(token))


def test_altered_payload_is_invalid(token_codec, principal):
    token = token_codec.issue(principal, TokenKind.access, 60)
    claims = jwt.get_unverified_claims(token)
    claims["role"] = UserRole.admin.value
    forged = jwt.encode(claims, "another-secret", algorithm=ALGORITHM)
    header, _, signature = token.split(".")
    spliced = ".".join([header, forged.split(".")[1], signature])

    with pytest.raises(InvalidTokenError):
        token_codec.decode(spliced)


def test_token_signed_with_other_secret_is_invalid(principal):
    token = TokenCodec("other-secret", 60).issue(principal, TokenKind.access, 60)

    with pytest.raises(InvalidTokenError):
        TokenCodec("unit-test-secret", 60).decode(token)


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
def test_malformed_token_is_invalid(token_codec, token):
    with pytest.raises(InvalidTokenError):
        token_codec.decode(token)


def test_token_missing_claims_is_invalid(token_codec):
    token = jwt.encode(
        {"sub": "x", "exp": int(datetime.now(UTC).timestamp()) + 60},
        "unit-test-secret",
        algorithm=ALGORITHM,
    )

    with pytest.raises(InvalidTokenError):
        token_codec.decode(token)
