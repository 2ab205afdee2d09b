"""
User API schemas.
"""

from __future__ import annotations

from pydantic import BaseModel


class UserResponse(BaseModel):
    id: int
    username: str
    role: str


def to_user_response(user_row: dict) -> UserResponse:
    return UserResponse(
        id=int(user_row["id"]),
        username=str(user_row["username"]),
        role=str(user_row.get("role") or ""),
    )
