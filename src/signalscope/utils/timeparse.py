"""Helpers for chunk timestamps and wall-clock labels."""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
MS_PER_DAY = 86_400_000

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_anchor(token: object) -> int:
    """Return ``token`` as integer epoch milliseconds.

    Numbers are taken as milliseconds already.  Strings may hold a number or
    an ISO-8601 timestamp; naive ISO values are read as UTC.  ``ValueError``
    is raised on anything else.
    """

    if isinstance(token, bool):
        raise ValueError(f"Unrecognised timestamp: {token!r}")
    if isinstance(token, (int, float)):
        if not math.isfinite(token):
            raise ValueError(f"Unrecognised timestamp: {token!r}")
        return int(round(token))
    if not isinstance(token, str) or not token.strip():
        raise ValueError(f"Unrecognised timestamp: {token!r}")

    text = token.strip()
    try:
        number = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(number):
            raise ValueError(f"Unrecognised timestamp: {token!r}")
        return int(round(number))
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError(f"Unrecognised timestamp: {token!r}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - EPOCH) // timedelta(milliseconds=1)


def format_clock(epoch_ms: float, tz_offset_hours: float = 0.0) -> str:
    """Format ``epoch_ms`` as ``HH:MM:SS.mmm`` in a fixed UTC offset.

    The offset is added to the absolute time before splitting into fields so
    the label does not depend on the caller's local timezone.
    """

    total = int(round(epoch_ms + tz_offset_hours * 3_600_000))
    of_day = total % MS_PER_DAY
    hours, rest = divmod(of_day, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"


def today_utc(now: Optional[Callable[[], datetime]] = None) -> str:
    """Return the current UTC calendar date as ``YYYY-MM-DD``."""

    current = now() if now is not None else datetime.now(timezone.utc)
    if current.tzinfo is not None:
        current = current.astimezone(timezone.utc)
    return current.date().isoformat()


def check_date(text: str) -> str:
    """Validate a ``YYYY-MM-DD`` date key and return it unchanged."""

    if not DATE_RE.match(text):
        raise ValueError(f"date must be YYYY-MM-DD, got {text!r}")
    date.fromisoformat(text)
    return text
