"""
Event API endpoints.

Every route requires an authenticated session or an allow-listed bearer token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from auth.dependencies import require_auth
from auth.session import AuthResult
from users.dependencies import get_user_repository
from users.repository import UserRepository

from . import schemas, service
from .dependencies import get_event_repository
from .queries import InvalidFilterError, parse_filters
from .repository import EventRepository

router = APIRouter(prefix="/api/events", dependencies=[Depends(require_auth)])


def _expand_user(expand: str) -> bool:
    return "user" in {part.strip().lower() for part in (expand or "").split(",")}


@router.get("/all")
async def list_all_events(
    expand: str = Query(default="", max_length=100),
    events: EventRepository = Depends(get_event_repository),
    users: UserRepository = Depends(get_user_repository),
) -> list[dict]:
    return await service.list_all_events(events=events, users=users, expand_user=_expand_user(expand))


@router.get("/")
async def query_events(
    id: int | None = Query(default=None, ge=0),
    type: str | None = Query(default=None, max_length=200),
    user_id: int | None = Query(default=None, ge=0),
    date: str | None = Query(default=None, max_length=64),
    start_date: str | None = Query(default=None, max_length=64),
    end_date: str | None = Query(default=None, max_length=64),
    expand: str = Query(default="", max_length=100),
    events: EventRepository = Depends(get_event_repository),
    users: UserRepository = Depends(get_user_repository),
) -> dict | list[dict]:
    """
    Filtered lookup. See `events.queries` for how filters pick a query.
    """
    try:
        filters = parse_filters(
            id=id,
            type=type,
            user_id=user_id,
            date=date,
            start_date=start_date,
            end_date=end_date,
        )
    except InvalidFilterError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return await service.query_events(
        filters,
        events=events,
        users=users,
        expand_user=_expand_user(expand),
    )


@router.get("/{event_id}")
async def get_event(
    event_id: int,
    expand: str = Query(default="", max_length=100),
    events: EventRepository = Depends(get_event_repository),
    users: UserRepository = Depends(get_user_repository),
) -> dict:
    return await service.get_event(event_id, events=events, users=users, expand_user=_expand_user(expand))


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: schemas.EventCreateRequest,
    auth: AuthResult = Depends(require_auth),
    events: EventRepository = Depends(get_event_repository),
) -> dict:
    return await service.create_event(payload, auth=auth, events=events)


@router.patch("/{event_id}")
async def update_event(
    event_id: int,
    payload: schemas.EventUpdateRequest,
    events: EventRepository = Depends(get_event_repository),
) -> dict:
    return await service.update_event(event_id, payload, events=events)


@router.delete("/{event_id}")
async def delete_event(
    event_id: int,
    events: EventRepository = Depends(get_event_repository),
) -> dict:
    return await service.delete_event(event_id, events=events)
