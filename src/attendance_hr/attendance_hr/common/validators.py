from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_email(value: str) -> str:
    value = require_non_empty(value, "email").lower()
    if not _EMAIL_RE.match(value):
        raise ValidationError("email is not valid")
    return value


def require_fields(payload: Mapping[str, Any], fields: Iterable[str]) -> None:
    """Report every missing field at once, before any remote call."""
    missing = [f for f in fields if payload.get(f) in (None, "")]
    if missing:
        raise ValidationError(
            "Missing required fields: " + ", ".join(missing),
            details={"missing": missing},
        )


def require_range(value: float, field_name: str, *, low: float, high: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number") from None
    if number < low or number > high:
        raise ValidationError(f"{field_name} must be between {low:g} and {high:g}")
    return number
