"""
Event business logic.

Scope:
- conversion of stored rows to the public response shape
- filtered lookups through the query dispatcher
- create / partial update / delete
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, status

from auth.session import AuthResult
from users.repository import UserRepository
from users.schemas import to_user_response

from . import schemas
from .queries import EventFilters, EventQueryKind, select_event_query
from .recurrence import resolve_recurring_interval
from .repository import EventRepository, UnknownOwnerError

logger = logging.getLogger(__name__)

# Explicit null is rejected for these; the columns are NOT NULL.
_NON_NULLABLE_UPDATES = ("type", "start_date", "title", "all_day", "recurring_type", "recurring_interval")


class NullEventError(ValueError):
    pass


def is_null_event(row: dict[str, Any]) -> bool:
    return not str(row.get("type") or "").strip()


def to_event_response(row: dict[str, Any], *, user_row: dict[str, Any] | None = None) -> schemas.EventResponse:
    """
    Drop internal columns (created_at/updated_at) and optionally nest the owner.

    Raises NullEventError for rows without a type.
    """
    if is_null_event(row):
        raise NullEventError(f"event {row.get('id')} has no type")

    user_id = row.get("user_id")
    return schemas.EventResponse(
        id=int(row["id"]),
        type=str(row["type"]),
        title=str(row.get("title") or ""),
        start_date=row["start_date"],
        end_date=row.get("end_date"),
        all_day=bool(row.get("all_day", True)),
        recurring_type=str(row.get("recurring_type") or ""),
        recurring_interval=int(row.get("recurring_interval") or 0),
        user_id=int(user_id) if user_id is not None else None,
        user=to_user_response(user_row) if user_row is not None else None,
    )


def _dump(event: schemas.EventResponse, *, expand_user: bool) -> dict[str, Any]:
    payload = event.model_dump(mode="json")
    if not expand_user:
        payload.pop("user", None)
    return payload


async def _owners_by_id(users: UserRepository, rows: list[dict[str, Any]]) -> dict[int, dict[str, Any]]:
    user_ids = sorted({int(row["user_id"]) for row in rows if row.get("user_id") is not None})
    owners = await users.get_users_by_ids(user_ids)
    return {int(owner["id"]): owner for owner in owners}


async def to_event_list(
    rows: list[dict[str, Any]],
    *,
    users: UserRepository | None = None,
    expand_user: bool = False,
) -> list[dict[str, Any]]:
    owners: dict[int, dict[str, Any]] = {}
    if expand_user and users is not None:
        owners = await _owners_by_id(users, rows)

    events: list[dict[str, Any]] = []
    for row in rows:
        owner = owners.get(int(row["user_id"])) if row.get("user_id") is not None else None
        try:
            event = to_event_response(row, user_row=owner)
        except NullEventError:
            logger.warning("null_event_skipped event_id=%s", row.get("id"))
            continue
        events.append(_dump(event, expand_user=expand_user))
    return events


async def _single_event(
    event_id: int,
    *,
    events: EventRepository,
    users: UserRepository | None,
    expand_user: bool,
) -> dict[str, Any]:
    row = await events.get_event(event_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found.")

    owner = None
    if expand_user and users is not None and row.get("user_id") is not None:
        owner = await users.get_user_by_id(int(row["user_id"]))

    try:
        event = to_event_response(row, user_row=owner)
    except NullEventError as exc:
        logger.warning("null_event_requested event_id=%s", event_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found.") from exc
    return _dump(event, expand_user=expand_user)


async def list_all_events(
    *,
    events: EventRepository,
    users: UserRepository | None = None,
    expand_user: bool = False,
) -> list[dict[str, Any]]:
    rows = await events.list_events()
    return await to_event_list(rows, users=users, expand_user=expand_user)


async def get_event(
    event_id: int,
    *,
    events: EventRepository,
    users: UserRepository | None = None,
    expand_user: bool = False,
) -> dict[str, Any]:
    return await _single_event(event_id, events=events, users=users, expand_user=expand_user)


async def query_events(
    filters: EventFilters,
    *,
    events: EventRepository,
    users: UserRepository | None = None,
    expand_user: bool = False,
) -> dict[str, Any] | list[dict[str, Any]]:
    """
    Run the single query shape selected for `filters`.

    BY_ID answers one event (or 404); every other shape answers a list.
    """
    query = select_event_query(filters)
    logger.debug("event_query kind=%s", query.kind.value)

    if query.kind is EventQueryKind.BY_ID:
        assert query.event_id is not None
        return await _single_event(query.event_id, events=events, users=users, expand_user=expand_user)

    rows = await events.find_events(query)
    return await to_event_list(rows, users=users, expand_user=expand_user)


def _unknown_owner(user_id: int | None) -> HTTPException:
    logger.info("event_owner_unknown user_id=%s", user_id)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id does not exist.")


def _owner_for_create(payload: schemas.EventCreateRequest, auth: AuthResult) -> int:
    if auth.user_id is not None:
        return auth.user_id
    if payload.user_id is not None:
        return payload.user_id
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="user_id is required when no session user is present.",
    )


async def create_event(
    payload: schemas.EventCreateRequest,
    *,
    auth: AuthResult,
    events: EventRepository,
) -> dict[str, Any]:
    event_type = payload.type.strip()
    if not event_type:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="type is required.")

    owner_id = _owner_for_create(payload, auth)
    try:
        row = await events.create_event(
            type=event_type,
            title=payload.title,
            start_date=payload.start_date,
            end_date=payload.end_date,
            all_day=payload.all_day,
            recurring_type=payload.recurring_type,
            recurring_interval=resolve_recurring_interval(payload.recurring_type, payload.recurring_interval),
            user_id=owner_id,
        )
    except UnknownOwnerError as exc:
        raise _unknown_owner(owner_id) from exc
    logger.info("event_created event_id=%s type=%s user_id=%s", row["id"], row["type"], owner_id)
    return _dump(to_event_response(row), expand_user=False)


def _update_fields(payload: schemas.EventUpdateRequest) -> dict[str, Any]:
    fields = payload.model_dump(exclude_unset=True)

    for column in _NON_NULLABLE_UPDATES:
        if column in fields and fields[column] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{column} cannot be null.",
            )

    if "type" in fields:
        fields["type"] = str(fields["type"]).strip()
        if not fields["type"]:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="type cannot be empty.")

    if "recurring_type" in fields:
        fields["recurring_interval"] = resolve_recurring_interval(
            fields["recurring_type"],
            fields.get("recurring_interval") or 0,
        )
    return fields


async def update_event(
    event_id: int,
    payload: schemas.EventUpdateRequest,
    *,
    events: EventRepository,
) -> dict[str, Any]:
    fields = _update_fields(payload)
    try:
        row = await events.update_event(event_id, fields)
    except UnknownOwnerError as exc:
        raise _unknown_owner(fields.get("user_id")) from exc
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found.")

    logger.info("event_updated event_id=%s fields=%s", event_id, ",".join(sorted(fields)) or "-")
    try:
        return _dump(to_event_response(row), expand_user=False)
    except NullEventError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found.") from exc


async def delete_event(event_id: int, *, events: EventRepository) -> dict[str, bool]:
    deleted = await events.delete_event(event_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found.")
    logger.info("event_deleted event_id=%s", event_id)
    return {"data": True}
