"""
Session token helpers.

Tokens are HS256 JWTs carrying only the user id (`sub`) and an expiry (`exp`).
They are stateless: nothing is stored server-side.
"""

from __future__ import annotations

import time
from typing import Any

import jwt

JWT_ALGORITHM = "HS256"
SESSION_TOKEN_TTL_DAYS = 90
SESSION_TOKEN_TTL_SECONDS = SESSION_TOKEN_TTL_DAYS * 24 * 60 * 60


class AuthSecurityError(RuntimeError):
    pass


def now_epoch_s() -> int:
    return int(time.time())


def _require_secret(secret: str) -> str:
    secret = (secret or "").strip()
    if not secret:
        raise AuthSecurityError("JWT signing secret is not configured.")
    return secret


def build_session_token(*, user_id: int, secret: str, issued_at: int | None = None) -> str:
    issued_at = now_epoch_s() if issued_at is None else issued_at
    payload = {
        "sub": str(user_id),
        "exp": issued_at + SESSION_TOKEN_TTL_SECONDS,
    }
    key = _require_secret(secret)
    try:
        return jwt.encode(payload, key, algorithm=JWT_ALGORITHM)
    except (jwt.PyJWTError, TypeError, ValueError) as exc:
        raise AuthSecurityError("Failed to sign session token.") from exc


def decode_session_token(token: str, *, secret: str) -> dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    Only HS256 is accepted; a token signed with any other algorithm (including
    "none") is rejected before its claims are looked at.
    """
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Session token is empty.")

    key = _require_secret(secret)
    try:
        payload = jwt.decode(
            raw,
            key,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Session token is expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid session token.") from exc

    # exp must be strictly in the future.
    try:
        expires_at = int(payload["exp"])
    except (TypeError, ValueError) as exc:
        raise AuthSecurityError("Invalid session token expiry.") from exc
    if expires_at <= now_epoch_s():
        raise AuthSecurityError("Session token is expired.")

    return payload
