"""
Recurrence tags and their interval in seconds.
"""

from __future__ import annotations

RECURRING_INTERVALS: dict[str, int] = {
    "daily": 86_400,
    "weekly": 604_800,
    "fortnightly": 1_210_000,
    "monthly": 2_628_000,
    "yearly": 31_540_000,
}


def parse_recurring_interval(recurring_type: str) -> int | None:
    """
    Return the interval for a known tag, or None for anything else
    (including "" and "None", which mark one-off events).
    """
    return RECURRING_INTERVALS.get((recurring_type or "").strip().lower())


def resolve_recurring_interval(recurring_type: str, explicit_interval: int = 0) -> int:
    interval = parse_recurring_interval(recurring_type)
    if interval is None:
        return max(int(explicit_interval or 0), 0)
    return interval
