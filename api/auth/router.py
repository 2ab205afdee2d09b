"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from core.settings import Settings
from users.dependencies import get_user_repository
from users.repository import UserRepository

from . import schemas, service
from .dependencies import get_directory, get_settings, require_user
from .directory import LdapDirectory

router = APIRouter()


@router.post("/login")
async def login(
    payload: schemas.LoginRequest,
    response: Response,
    directory: LdapDirectory = Depends(get_directory),
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_settings),
) -> schemas.AuthResponse:
    return await service.login(
        payload,
        response=response,
        directory=directory,
        users=users,
        settings=settings,
    )


@router.get("/validate")
async def validate(current_user: dict = Depends(require_user)) -> schemas.AuthResponse:
    return service.me(current_user)


@router.post("/logout")
async def logout(
    response: Response,
    settings: Settings = Depends(get_settings),
) -> dict:
    return service.logout(response=response, settings=settings)
