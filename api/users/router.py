"""
User API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from auth.dependencies import require_auth

from .dependencies import get_user_repository
from .repository import UserRepository
from .schemas import UserResponse, to_user_response

router = APIRouter(prefix="/api/users", dependencies=[Depends(require_auth)])


@router.get("/all")
async def list_users(users: UserRepository = Depends(get_user_repository)) -> list[UserResponse]:
    rows = await users.list_users()
    return [to_user_response(row) for row in rows]


@router.get("/{user_id}")
async def get_user(user_id: int, users: UserRepository = Depends(get_user_repository)) -> dict:
    row = await users.get_user_by_id(user_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return {"user": to_user_response(row).model_dump()}
