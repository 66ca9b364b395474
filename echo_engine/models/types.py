"""Common field types shared across models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic.functional_validators import BeforeValidator


def _validate_utc_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            # MongoDB hands back naive datetimes that are already UTC
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("datetime string must not be empty")
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return _validate_utc_datetime(parsed)
    raise TypeError("datetime value must be datetime, epoch milliseconds or ISO string")


UtcDateTime = Annotated[datetime, BeforeValidator(_validate_utc_datetime)]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


__all__ = ["UtcDateTime", "utc_now"]
