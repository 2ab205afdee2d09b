"""
Auth API schemas (request/response models).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from users.schemas import UserResponse


class LoginRequest(BaseModel):
    # Clients send {"User": ..., "Password": ...}; lowercase keys are accepted too.
    model_config = ConfigDict(populate_by_name=True)

    user: str = Field(..., alias="User", min_length=1, max_length=256)
    password: str = Field(..., alias="Password", max_length=256)


class AuthResponse(BaseModel):
    user: UserResponse
