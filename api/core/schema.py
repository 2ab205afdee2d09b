"""
Table definitions, applied idempotently on startup.

The partial unique index on events backs the holiday sync: one bank holiday
event per start date, enforced by the database rather than by a read-then-write.
"""

from __future__ import annotations

import logging

from .db import Database

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id          BIGSERIAL PRIMARY KEY,
        username    TEXT NOT NULL UNIQUE,
        role        TEXT NOT NULL DEFAULT '',
        created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS events (
        id                  BIGSERIAL PRIMARY KEY,
        type                TEXT NOT NULL DEFAULT '',
        title               TEXT NOT NULL DEFAULT '',
        start_date          TIMESTAMPTZ NOT NULL,
        end_date            TIMESTAMPTZ NULL,
        all_day             BOOLEAN NOT NULL DEFAULT true,
        recurring_type      TEXT NOT NULL DEFAULT '',
        recurring_interval  BIGINT NOT NULL DEFAULT 0,
        user_id             BIGINT NULL REFERENCES users (id) ON DELETE SET NULL,
        created_at          TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at          TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    "CREATE INDEX IF NOT EXISTS events_type_start_idx ON events (type, start_date)",
    "CREATE INDEX IF NOT EXISTS events_user_id_idx ON events (user_id)",
    """
    CREATE UNIQUE INDEX IF NOT EXISTS events_bank_holiday_start_uidx
    ON events (type, start_date)
    WHERE type = 'bank_holiday'
    """,
)


async def apply_schema(db: Database) -> None:
    logger.info("schema_migrate start")
    for statement in SCHEMA_STATEMENTS:
        await db.execute(statement)
    logger.info("schema_migrate done statements=%s", len(SCHEMA_STATEMENTS))
