"""
Per-request session validation.

The outcome is an explicit `AuthResult` rather than a value stashed on the
request: either a resolved user, a trusted caller without a user (static
bearer token), or a rejection with a reason.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from . import security

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "Authorization"


class UserLookup(Protocol):
    async def get_user_by_id(self, user_id: int) -> dict[str, Any] | None: ...


class AuthStatus(str, Enum):
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"
    REJECTED = "rejected"


@dataclass(frozen=True)
class AuthResult:
    status: AuthStatus
    user: dict[str, Any] | None = None
    reason: str = ""

    @classmethod
    def authenticated(cls, user: dict[str, Any]) -> AuthResult:
        return cls(status=AuthStatus.AUTHENTICATED, user=user)

    @classmethod
    def anonymous(cls) -> AuthResult:
        return cls(status=AuthStatus.ANONYMOUS)

    @classmethod
    def rejected(cls, reason: str) -> AuthResult:
        return cls(status=AuthStatus.REJECTED, reason=reason)

    @property
    def is_rejected(self) -> bool:
        return self.status is AuthStatus.REJECTED

    @property
    def user_id(self) -> int | None:
        return int(self.user["id"]) if self.user is not None else None


def extract_bearer_token(authorization: str | None) -> str | None:
    raw = (authorization or "").strip()
    scheme, _, token = raw.partition(" ")
    if scheme != "Bearer":
        return None
    token = token.strip()
    return token or None


async def resolve_auth(
    *,
    users: UserLookup,
    secret: str,
    allowed_tokens: tuple[str, ...],
    authorization: str | None,
    session_cookie: str | None,
) -> AuthResult:
    bearer = extract_bearer_token(authorization)
    if bearer is not None and bearer in allowed_tokens:
        logger.info("auth_static_token_accepted")
        return AuthResult.anonymous()

    token = (session_cookie or "").strip()
    if not token:
        logger.info("auth_rejected reason=missing_cookie")
        return AuthResult.rejected("Not authenticated.")

    try:
        payload = security.decode_session_token(token, secret=secret)
    except security.AuthSecurityError as exc:
        logger.info("auth_rejected reason=%s", exc)
        return AuthResult.rejected(str(exc))

    subject = str(payload.get("sub") or "").strip()
    if not subject.isdigit():
        logger.info("auth_rejected reason=invalid_subject")
        return AuthResult.rejected("Invalid session token subject.")

    user = await users.get_user_by_id(int(subject))
    if user is None:
        logger.info("auth_rejected reason=unknown_user sub=%s", subject)
        return AuthResult.rejected("User not found.")

    return AuthResult.authenticated(user)
