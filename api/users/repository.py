"""
User persistence helpers.
"""

from __future__ import annotations

from typing import Any

from core.db import Database

DEFAULT_ROLE = "Viewer"

_USER_COLUMNS = "id, username, role, created_at, updated_at"


def normalize_username(username: str) -> str:
    return (username or "").strip()


class UserRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_user_by_id(self, user_id: int) -> dict[str, Any] | None:
        return await self._db.fetch_one(
            f"""
            SELECT {_USER_COLUMNS}
            FROM users
            WHERE id = $1
            """,
            user_id,
        )

    async def get_users_by_ids(self, user_ids: list[int]) -> list[dict[str, Any]]:
        if not user_ids:
            return []
        return await self._db.fetch_all(
            f"""
            SELECT {_USER_COLUMNS}
            FROM users
            WHERE id = ANY($1::bigint[])
            """,
            list(user_ids),
        )

    async def list_users(self) -> list[dict[str, Any]]:
        return await self._db.fetch_all(
            f"""
            SELECT {_USER_COLUMNS}
            FROM users
            ORDER BY id
            """
        )

    async def first_or_create(self, *, username: str, role: str = DEFAULT_ROLE) -> dict[str, Any]:
        """
        Return the user with this username, inserting it with `role` if absent.

        An existing row is returned unchanged (its role is never overwritten).
        The no-op DO UPDATE makes RETURNING yield the existing row in one
        statement, so concurrent callers cannot both insert.
        """
        row = await self._db.fetch_one(
            f"""
            INSERT INTO users (username, role)
            VALUES ($1, $2)
            ON CONFLICT (username) DO UPDATE
            SET username = EXCLUDED.username
            RETURNING {_USER_COLUMNS}
            """,
            normalize_username(username),
            role,
        )
        if row is None:
            raise RuntimeError("Failed to create user.")
        return row
