"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

from fastapi import Cookie, Depends, Header, HTTPException, Request, status

from core.settings import Settings
from users.dependencies import get_user_repository
from users.repository import UserRepository

from .directory import DirectoryConfig, LdapDirectory
from .session import SESSION_COOKIE_NAME, AuthResult, resolve_auth


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_directory(settings: Settings = Depends(get_settings)) -> LdapDirectory:
    return LdapDirectory(DirectoryConfig.from_settings(settings))


async def require_auth(
    authorization: str | None = Header(default=None),
    session_cookie: str | None = Cookie(default=None, alias=SESSION_COOKIE_NAME),
    settings: Settings = Depends(get_settings),
    users: UserRepository = Depends(get_user_repository),
) -> AuthResult:
    result = await resolve_auth(
        users=users,
        secret=settings.jwt_secret,
        allowed_tokens=settings.allowed_tokens,
        authorization=authorization,
        session_cookie=session_cookie,
    )
    if result.is_rejected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.reason or "Unauthorized",
        )
    return result


async def require_user(auth: AuthResult = Depends(require_auth)) -> dict:
    if auth.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return auth.user
