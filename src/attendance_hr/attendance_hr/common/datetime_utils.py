from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import ValidationError

Timestamp = Union[datetime, str]


def parse_iso_date(value: Union[date, str]) -> date:
    """Parse YYYY-MM-DD string into date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date: {value!r}") from None


def parse_time(value: Union[time, str, None]) -> Optional[time]:
    """Parse 'HH:MM' or 'HH:MM:SS' into a time; None stays None."""
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid time: {value!r}") from None


def ensure_utc(value: Timestamp) -> datetime:
    """Return value as an aware UTC datetime.

    Accepts aware datetimes and ISO-8601 strings carrying an offset ('Z' allowed).
    Naive values are rejected: the instant they denote is ambiguous.
    """
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(raw)
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}") from None
    if not isinstance(value, datetime):
        raise ValidationError(f"Invalid timestamp: {value!r}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationError(f"Timestamp without UTC offset: {value.isoformat()}")
    return value.astimezone(timezone.utc)


def optional_utc(value: Optional[Timestamp]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    return ensure_utc(value)


def resolve_timezone(name: Optional[str]) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {name!r}") from None


def local_date(instant: datetime, tz: tzinfo) -> date:
    """Calendar date of an instant in the organization timezone."""
    return ensure_utc(instant).astimezone(tz).date()


def format_local(instant: Optional[datetime], tz: tzinfo, fmt: str = "%H:%M") -> str:
    if instant is None:
        return ""
    return ensure_utc(instant).astimezone(tz).strftime(fmt)


def now_utc() -> datetime:
    """Current instant.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)
