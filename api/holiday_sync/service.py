"""
Bank holiday synchronisation.

One run fetches the feed, turns each entry into a `bank_holiday` event owned
by a bot user, and inserts only the dates that are not stored yet. Running it
again against the same feed changes nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from events.repository import EventRepository
from users.repository import UserRepository

from . import client

logger = logging.getLogger(__name__)

BANK_HOLIDAY_TYPE = "bank_holiday"
BOT_USERNAME = "bank-holiday-bot"
BOT_ROLE = "bot"
HOLIDAY_DATE_FORMAT = "%Y-%m-%d"

FeedFetcher = Callable[..., Awaitable[list[dict[str, Any]]]]


@dataclass(frozen=True)
class Holiday:
    title: str
    date: datetime


@dataclass(frozen=True)
class SyncStats:
    fetched: int
    parsed: int
    inserted: int


def parse_holidays(entries: list[dict[str, Any]]) -> list[Holiday]:
    """
    Convert raw feed entries, skipping (and logging) entries whose date does
    not parse.
    """
    holidays: list[Holiday] = []
    for entry in entries:
        raw_date = str(entry.get("date") or "").strip()
        try:
            day = datetime.strptime(raw_date, HOLIDAY_DATE_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError:
            logger.warning("holiday_date_unparseable date=%r title=%r", raw_date, entry.get("title"))
            continue
        holidays.append(Holiday(title=str(entry.get("title") or "").strip(), date=day))
    return holidays


async def sync_bank_holidays(
    *,
    events: EventRepository,
    users: UserRepository,
    feed_url: str,
    division: str,
    fetch: FeedFetcher = client.fetch_holidays,
) -> SyncStats | None:
    """
    Run one synchronisation. Returns None when the feed could not be read;
    the next scheduled run tries again.
    """
    try:
        entries = await fetch(url=feed_url, division=division)
    except client.HolidayFeedError as exc:
        logger.warning("holiday_sync_aborted reason=%s", exc)
        return None
    logger.info("holiday_feed_fetched count=%s url=%s", len(entries), feed_url)

    holidays = parse_holidays(entries)
    bot = await users.first_or_create(username=BOT_USERNAME, role=BOT_ROLE)

    inserted = 0
    for holiday in holidays:
        created = await events.create_event_if_absent(
            type=BANK_HOLIDAY_TYPE,
            title=holiday.title,
            start_date=holiday.date,
            all_day=True,
            recurring_type="None",
            recurring_interval=0,
            user_id=int(bot["id"]),
        )
        if created:
            inserted += 1

    stats = SyncStats(fetched=len(entries), parsed=len(holidays), inserted=inserted)
    logger.info(
        "holiday_sync_complete fetched=%s parsed=%s inserted=%s",
        stats.fetched,
        stats.parsed,
        stats.inserted,
    )
    return stats
