"""
Event query dispatch.

Incoming filters (`id`, `type`, `user_id`, `date`, `start_date` + `end_date`)
select exactly one predefined query shape. Rules are evaluated top to bottom
and the first match wins, so precedence matters as much as the predicates:

 1. id                                   -> BY_ID
 2. type, no user_id, no date/range      -> BY_TYPE
 3. type, no user_id, date               -> BY_TYPE_AND_DATE
 4. type, no user_id, range              -> BY_TYPE_AND_RANGE
 5. user_id, no type/date/range          -> BY_USER
 6. user_id + type, no date/range        -> BY_USER_AND_TYPE
 7. user_id + type + date, no range      -> BY_USER_TYPE_AND_DATE
 8. user_id + type + range               -> BY_USER_TYPE_AND_RANGE
 9. date                                 -> BY_DATE
10. range                                -> BY_RANGE
11. anything else                        -> ALL

This module is pure: parsing and selection only. SQL lives in the repository.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

TIME_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%fZ",
)


class InvalidFilterError(ValueError):
    pass


class EventQueryKind(str, Enum):
    BY_ID = "by_id"
    BY_TYPE = "by_type"
    BY_TYPE_AND_DATE = "by_type_and_date"
    BY_TYPE_AND_RANGE = "by_type_and_range"
    BY_USER = "by_user"
    BY_USER_AND_TYPE = "by_user_and_type"
    BY_USER_TYPE_AND_DATE = "by_user_type_and_date"
    BY_USER_TYPE_AND_RANGE = "by_user_type_and_range"
    BY_DATE = "by_date"
    BY_RANGE = "by_range"
    ALL = "all"


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class DayWindow:
    """Half-open [start, end) covering one calendar day in UTC."""

    start: datetime
    end: datetime

    @classmethod
    def for_day(cls, value: datetime) -> DayWindow:
        start = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        return cls(start=start, end=start + timedelta(days=1))


@dataclass(frozen=True)
class EventFilters:
    id: int | None = None
    type: str | None = None
    user_id: int | None = None
    date: datetime | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    @property
    def has_id(self) -> bool:
        return bool(self.id)

    @property
    def has_type(self) -> bool:
        return bool(self.type)

    @property
    def has_user(self) -> bool:
        return bool(self.user_id)

    @property
    def has_date(self) -> bool:
        return self.date is not None

    @property
    def has_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None


@dataclass(frozen=True)
class EventQuery:
    kind: EventQueryKind
    event_id: int | None = None
    type: str | None = None
    user_id: int | None = None
    day: DayWindow | None = None
    range: DateRange | None = None


def parse_time(value: str) -> datetime:
    """
    Parse one of the accepted timestamp formats. Results are UTC-aware.
    """
    raw = (value or "").strip()
    for fmt in TIME_FORMATS:
        try:
            parsed = datetime.strptime(raw, fmt)
        except ValueError:
            continue
        return parsed.replace(tzinfo=timezone.utc)
    raise InvalidFilterError(f"unrecognised time format: {raw!r}")


def _optional_time(name: str, value: str | None) -> datetime | None:
    if value is None or not value.strip():
        return None
    try:
        return parse_time(value)
    except InvalidFilterError as exc:
        raise InvalidFilterError(f"{name}: {exc}") from exc


def parse_filters(
    *,
    id: int | None = None,
    type: str | None = None,
    user_id: int | None = None,
    date: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> EventFilters:
    parsed_start = _optional_time("start_date", start_date)
    parsed_end = _optional_time("end_date", end_date)
    if (parsed_start is None) != (parsed_end is None):
        raise InvalidFilterError("start_date and end_date must be supplied together")

    return EventFilters(
        id=id or None,
        type=(type or "").strip() or None,
        user_id=user_id or None,
        date=_optional_time("date", date),
        start_date=parsed_start,
        end_date=parsed_end,
    )


def _day(filters: EventFilters) -> DayWindow:
    assert filters.date is not None
    return DayWindow.for_day(filters.date)


def _range(filters: EventFilters) -> DateRange:
    assert filters.start_date is not None and filters.end_date is not None
    return DateRange(start=filters.start_date, end=filters.end_date)


def select_event_query(filters: EventFilters) -> EventQuery:
    if filters.has_id:
        return EventQuery(EventQueryKind.BY_ID, event_id=filters.id)

    if filters.has_type and not filters.has_user:
        if not filters.has_date and not filters.has_range:
            return EventQuery(EventQueryKind.BY_TYPE, type=filters.type)
        if filters.has_date:
            return EventQuery(EventQueryKind.BY_TYPE_AND_DATE, type=filters.type, day=_day(filters))
        return EventQuery(EventQueryKind.BY_TYPE_AND_RANGE, type=filters.type, range=_range(filters))

    if filters.has_user:
        no_dates = not filters.has_date and not filters.has_range
        if not filters.has_type and no_dates:
            return EventQuery(EventQueryKind.BY_USER, user_id=filters.user_id)
        if filters.has_type and no_dates:
            return EventQuery(EventQueryKind.BY_USER_AND_TYPE, user_id=filters.user_id, type=filters.type)
        if filters.has_type and filters.has_date and not filters.has_range:
            return EventQuery(
                EventQueryKind.BY_USER_TYPE_AND_DATE,
                user_id=filters.user_id,
                type=filters.type,
                day=_day(filters),
            )
        if filters.has_type and filters.has_range:
            return EventQuery(
                EventQueryKind.BY_USER_TYPE_AND_RANGE,
                user_id=filters.user_id,
                type=filters.type,
                range=_range(filters),
            )
        # user_id with a date but no type falls through to the date-only rules.

    if filters.has_date:
        return EventQuery(EventQueryKind.BY_DATE, day=_day(filters))

    if filters.has_range:
        return EventQuery(EventQueryKind.BY_RANGE, range=_range(filters))

    return EventQuery(EventQueryKind.ALL)
