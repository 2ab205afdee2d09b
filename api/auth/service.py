"""
Auth business logic.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Response, status

from core.settings import Settings
from users.repository import DEFAULT_ROLE, UserRepository
from users.schemas import to_user_response

from . import schemas, security
from .directory import DirectoryUnavailableError, InvalidCredentialsError, LdapDirectory
from .session import SESSION_COOKIE_NAME

logger = logging.getLogger(__name__)


def set_session_cookie(response: Response, token: str, *, secure: bool = False) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=security.SESSION_TOKEN_TTL_SECONDS,
        path="/",
        secure=secure,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response, *, secure: bool = False) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path="/",
        secure=secure,
        httponly=True,
        samesite="lax",
    )


async def login(
    payload: schemas.LoginRequest,
    *,
    response: Response,
    directory: LdapDirectory,
    users: UserRepository,
    settings: Settings,
) -> schemas.AuthResponse:
    try:
        await directory.authenticate(payload.user, payload.password)
    except DirectoryUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to connect to LDAP backend.",
        ) from exc
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username and password.",
        ) from exc

    try:
        user_row = await users.first_or_create(username=payload.user, role=DEFAULT_ROLE)
    except Exception as exc:
        logger.exception("login_user_upsert_failed username=%s", payload.user)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to create user.",
        ) from exc

    try:
        token = security.build_session_token(user_id=int(user_row["id"]), secret=settings.jwt_secret)
    except security.AuthSecurityError as exc:
        logger.error("login_token_failed user_id=%s reason=%s", user_row["id"], exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to create token.",
        ) from exc

    set_session_cookie(response, token, secure=settings.cookie_secure)
    logger.info("login_ok user_id=%s username=%s", user_row["id"], user_row["username"])
    return schemas.AuthResponse(user=to_user_response(user_row))


def logout(*, response: Response, settings: Settings) -> dict[str, bool]:
    clear_session_cookie(response, secure=settings.cookie_secure)
    return {"ok": True}


def me(user_row: dict) -> schemas.AuthResponse:
    return schemas.AuthResponse(user=to_user_response(user_row))
