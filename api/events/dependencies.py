from __future__ import annotations

from fastapi import Depends

from core.db import Database, get_db

from .repository import EventRepository


def get_event_repository(db: Database = Depends(get_db)) -> EventRepository:
    return EventRepository(db)
