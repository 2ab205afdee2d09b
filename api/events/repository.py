"""
Event persistence (raw SQL).

Every list query goes through `compile_event_query`, which maps a dispatcher
shape to a fixed WHERE clause. Rows come back in id order.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import asyncpg

from core.db import Database

from .queries import DateRange, DayWindow, EventQuery, EventQueryKind


class UnknownOwnerError(ValueError):
    """The event's user_id does not reference an existing user."""

EVENT_COLUMNS = (
    "id, type, title, start_date, end_date, all_day, "
    "recurring_type, recurring_interval, user_id, created_at, updated_at"
)

# Columns a PATCH may touch. Anything else in an update dict is a programming error.
UPDATABLE_COLUMNS: frozenset[str] = frozenset(
    {
        "type",
        "title",
        "start_date",
        "end_date",
        "all_day",
        "recurring_type",
        "recurring_interval",
        "user_id",
    }
)


def _range_clause(first_param: int) -> str:
    start, end = f"${first_param}", f"${first_param + 1}"
    return (
        f"((start_date >= {start} AND end_date <= {end}) "
        f"OR (start_date BETWEEN {start} AND {end} AND all_day = true))"
    )


def _day_clause(first_param: int) -> str:
    return f"(start_date >= ${first_param} AND start_date < ${first_param + 1})"


def compile_event_query(query: EventQuery) -> tuple[str, list[Any]]:
    """
    Return `(where_sql, args)` for a query shape. `where_sql` is "" for ALL.
    """
    kind = query.kind
    day: DayWindow | None = query.day
    rng: DateRange | None = query.range

    if kind is EventQueryKind.BY_ID:
        return "id = $1", [query.event_id]
    if kind is EventQueryKind.BY_TYPE:
        return "type = $1", [query.type]
    if kind is EventQueryKind.BY_TYPE_AND_DATE:
        assert day is not None
        return f"type = $1 AND {_day_clause(2)}", [query.type, day.start, day.end]
    if kind is EventQueryKind.BY_TYPE_AND_RANGE:
        assert rng is not None
        return f"type = $1 AND {_range_clause(2)}", [query.type, rng.start, rng.end]
    if kind is EventQueryKind.BY_USER:
        return "user_id = $1", [query.user_id]
    if kind is EventQueryKind.BY_USER_AND_TYPE:
        return "user_id = $1 AND type = $2", [query.user_id, query.type]
    if kind is EventQueryKind.BY_USER_TYPE_AND_DATE:
        assert day is not None
        return (
            f"user_id = $1 AND type = $2 AND {_day_clause(3)}",
            [query.user_id, query.type, day.start, day.end],
        )
    if kind is EventQueryKind.BY_USER_TYPE_AND_RANGE:
        assert rng is not None
        return (
            f"user_id = $1 AND type = $2 AND {_range_clause(3)}",
            [query.user_id, query.type, rng.start, rng.end],
        )
    if kind is EventQueryKind.BY_DATE:
        assert day is not None
        return _day_clause(1), [day.start, day.end]
    if kind is EventQueryKind.BY_RANGE:
        assert rng is not None
        return _range_clause(1), [rng.start, rng.end]
    return "", []


class EventRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_event(self, event_id: int) -> dict[str, Any] | None:
        return await self._db.fetch_one(
            f"""
            SELECT {EVENT_COLUMNS}
            FROM events
            WHERE id = $1
            """,
            event_id,
        )

    async def list_events(self) -> list[dict[str, Any]]:
        return await self._db.fetch_all(
            f"""
            SELECT {EVENT_COLUMNS}
            FROM events
            ORDER BY id
            """
        )

    async def find_events(self, query: EventQuery) -> list[dict[str, Any]]:
        where, args = compile_event_query(query)
        where_sql = f"WHERE {where}" if where else ""
        return await self._db.fetch_all(
            f"""
            SELECT {EVENT_COLUMNS}
            FROM events
            {where_sql}
            ORDER BY id
            """,
            *args,
        )

    async def create_event(
        self,
        *,
        type: str,
        start_date: datetime,
        title: str = "",
        end_date: datetime | None = None,
        all_day: bool = True,
        recurring_type: str = "",
        recurring_interval: int = 0,
        user_id: int | None = None,
    ) -> dict[str, Any]:
        try:
            row = await self._db.fetch_one(
                f"""
                INSERT INTO events (
                    type, title, start_date, end_date, all_day,
                    recurring_type, recurring_interval, user_id
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                RETURNING {EVENT_COLUMNS}
                """,
                type,
                title,
                start_date,
                end_date,
                all_day,
                recurring_type,
                recurring_interval,
                user_id,
            )
        except asyncpg.ForeignKeyViolationError as exc:
            raise UnknownOwnerError(f"user {user_id} does not exist") from exc
        if row is None:
            raise RuntimeError("Failed to create event.")
        return row

    async def create_event_if_absent(
        self,
        *,
        type: str,
        start_date: datetime,
        title: str = "",
        all_day: bool = True,
        recurring_type: str = "",
        recurring_interval: int = 0,
        user_id: int | None = None,
    ) -> bool:
        """
        Insert unless an event with the same (type, start_date) exists.

        Relies on the partial unique index for bank holidays; returns True when
        a row was inserted.
        """
        row = await self._db.fetch_one(
            """
            INSERT INTO events (
                type, title, start_date, all_day,
                recurring_type, recurring_interval, user_id
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT (type, start_date) WHERE type = 'bank_holiday' DO NOTHING
            RETURNING id
            """,
            type,
            title,
            start_date,
            all_day,
            recurring_type,
            recurring_interval,
            user_id,
        )
        return row is not None

    async def update_event(self, event_id: int, fields: dict[str, Any]) -> dict[str, Any] | None:
        """
        Partial update. Returns the updated row, or None when not found.

        Raises UnknownOwnerError when `user_id` points at no user.
        """
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unknown event columns: {sorted(unknown)}")
        if not fields:
            return await self.get_event(event_id)

        columns = sorted(fields)
        assignments = ", ".join(f"{column} = ${index}" for index, column in enumerate(columns, start=2))
        try:
            return await self._db.fetch_one(
                f"""
                UPDATE events
                SET {assignments},
                    updated_at = now()
                WHERE id = $1
                RETURNING {EVENT_COLUMNS}
                """,
                event_id,
                *(fields[column] for column in columns),
            )
        except asyncpg.ForeignKeyViolationError as exc:
            raise UnknownOwnerError(f"user {fields.get('user_id')} does not exist") from exc

    async def delete_event(self, event_id: int) -> bool:
        row = await self._db.fetch_one(
            """
            DELETE FROM events
            WHERE id = $1
            RETURNING id
            """,
            event_id,
        )
        return row is not None
