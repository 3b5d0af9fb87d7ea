"""Value Coercion — normalizes loosely-typed body fields into canonical values.

Invariants:
    - coerce_completed NEVER raises: unknown input falls back (lenient by design of the field)
    - coerce_deadline returns a timezone-aware UTC datetime or raises InvalidDeadlineError
    - Numeric input (number or numeric text) is always epoch milliseconds

Design Decisions:
    - Numeric interpretation first, text parsing second: "1700000000000" is a
      timestamp, never a year
    - Naive datetimes and date-only text are UTC: the store compares in UTC
"""

import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from app.core.errors import InvalidDeadlineError


def coerce_completed(raw: object, fallback: bool = False) -> bool:
    """Accept bool, None, or "true"/"false" text; anything else is fallback."""
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return fallback
    text = str(raw).lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return fallback


def coerce_deadline(raw: object) -> datetime:
    """Accept datetime, epoch milliseconds, or date text."""
    if isinstance(raw, datetime):
        return _as_utc(raw)
    if isinstance(raw, bool) or raw is None:
        raise InvalidDeadlineError(raw)

    if isinstance(raw, (int, float)):
        return _from_epoch_ms(raw, raw)
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidDeadlineError(raw)

    text = raw.strip()
    try:
        millis = float(text)
    except ValueError:
        return _from_text(text, raw)
    return _from_epoch_ms(millis, raw)


def _from_epoch_ms(millis: float, raw: object) -> datetime:
    if not math.isfinite(millis):
        raise InvalidDeadlineError(raw)
    try:
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        raise InvalidDeadlineError(raw)


def _from_text(text: str, raw: object) -> datetime:
    try:
        return _as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    try:
        return _as_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        raise InvalidDeadlineError(raw)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
