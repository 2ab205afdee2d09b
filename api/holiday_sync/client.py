"""
Public holiday feed client.

Expected payload (gov.uk format):
{
  "england-and-wales": {
    "division": "england-and-wales",
    "events": [{"title": "...", "date": "2024-12-25", "notes": "", "bunting": true}, ...]
  },
  "scotland": {...},
  "northern-ireland": {...}
}
"""

from __future__ import annotations

from typing import Any

import httpx


class HolidayFeedError(RuntimeError):
    pass


async def fetch_holidays(
    *,
    url: str,
    division: str,
    timeout_s: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[dict[str, Any]]:
    """
    Fetch the feed and return the raw holiday entries for one division.
    """
    url = (url or "").strip()
    if not url:
        raise HolidayFeedError("Holiday feed URL is empty.")

    try:
        async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
            resp = await client.get(url)
    except httpx.HTTPError as exc:
        raise HolidayFeedError(f"Holiday feed request failed: {exc}") from exc

    if resp.status_code != 200:
        body = resp.text[:300]
        raise HolidayFeedError(f"Holiday feed request failed: {resp.status_code} {body}")

    try:
        data: dict[str, Any] = resp.json()
    except ValueError as exc:
        raise HolidayFeedError("Holiday feed returned invalid JSON.") from exc

    section = data.get(division) if isinstance(data, dict) else None
    if not isinstance(section, dict):
        raise HolidayFeedError(f"Holiday feed has no division {division!r}.")

    entries = section.get("events")
    if not isinstance(entries, list):
        raise HolidayFeedError(f"Holiday feed division {division!r} has no events list.")

    return [item for item in entries if isinstance(item, dict)]
