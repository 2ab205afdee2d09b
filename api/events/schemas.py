"""
Pydantic schemas for event endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from users.schemas import UserResponse


class EventCreateRequest(BaseModel):
    type: str = Field(..., min_length=1, max_length=200)
    start_date: datetime
    title: str = Field(default="", max_length=500)
    end_date: datetime | None = None
    all_day: bool = True
    recurring_type: str = Field(default="", max_length=50)
    recurring_interval: int = Field(default=0, ge=0)
    # Only honoured for trusted (static token) callers, who have no session user.
    user_id: int | None = Field(default=None, ge=1)


class EventUpdateRequest(BaseModel):
    """
    Partial update: only fields present in the request body are written.
    """

    type: str | None = Field(default=None, min_length=1, max_length=200)
    start_date: datetime | None = None
    title: str | None = Field(default=None, max_length=500)
    end_date: datetime | None = None
    all_day: bool | None = None
    recurring_type: str | None = Field(default=None, max_length=50)
    recurring_interval: int | None = Field(default=None, ge=0)
    user_id: int | None = Field(default=None, ge=1)


class EventResponse(BaseModel):
    id: int
    type: str
    title: str
    start_date: datetime
    end_date: datetime | None
    all_day: bool
    recurring_type: str
    recurring_interval: int
    user_id: int | None
    user: UserResponse | None = None
