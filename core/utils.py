# core/utils.py

"""
Repository for program-wide utilities.

Timestamp parsing lives here because store records arrive with several shapes
for the same field: native datetimes, ISO-8601 strings, or a
`{"seconds": ..., "nanoseconds": ...}` mapping as written by the document store.
"""

from __future__ import annotations

import datetime
import uuid
from collections.abc import Mapping
from typing import Any


def generate_uuid() -> str:
    return str(uuid.uuid4())


def parse_timestamp(value: Any) -> datetime.datetime | None:
    """
    Resolves a stored timestamp into a `datetime.datetime`.

    Returns None when the value cannot be resolved; the caller decides whether
    that is a data-quality warning or an error.
    """
    if value is None:
        return None

    if isinstance(value, datetime.datetime):
        return value

    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time.min)

    if isinstance(value, str):
        try:
            return datetime.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    if isinstance(value, Mapping) and "seconds" in value:
        try:
            seconds = float(value["seconds"])
            nanoseconds = float(value.get("nanoseconds", 0) or 0)
        except (TypeError, ValueError):
            return None
        return datetime.datetime.fromtimestamp(
            seconds + nanoseconds / 1_000_000_000, tz=datetime.timezone.utc
        )

    return None


def parse_date(value: Any) -> datetime.date | None:
    """Resolves a stored ISO date (or datetime) into a `datetime.date`."""
    if value is None or value == "":
        return None

    if isinstance(value, datetime.datetime):
        return value.date()

    if isinstance(value, datetime.date):
        return value

    if isinstance(value, str):
        try:
            return datetime.date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None

    return None


def to_utc(value: datetime.datetime) -> datetime.datetime:
    """Makes naive and aware datetimes comparable; naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)

    return value.astimezone(datetime.timezone.utc)
