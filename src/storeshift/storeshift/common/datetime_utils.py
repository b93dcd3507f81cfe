from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_instant(value: str, tz: Optional[tzinfo] = None) -> datetime:
    """Parse an ISO-8601 timestamp (a trailing 'Z' is accepted).

    Naive values are interpreted in `tz` (UTC when not given).
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz or timezone.utc)
    return parsed


def format_instant(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def get_zone(name: str) -> tzinfo:
    return ZoneInfo(name)


def now_utc() -> datetime:
    """Current instant.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc)
