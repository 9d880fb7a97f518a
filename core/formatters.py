# core/formatters.py

# all pure utilities & date/datetime helpers
# must never import from models!

import datetime
from typing import Any

# === generic text formatters ===


def format_list_with_and(items: list[Any]) -> str:
    if not items:
        return ""

    if len(items) == 1:
        return str(items[0])

    if len(items) == 2:
        return " and ".join(str(item) for item in items)

    return ", ".join(str(item) for item in items[:-1]) + ", and " + str(items[-1])


def format_count_of(count: int, limit: int) -> str:
    return f"({count}/{limit})"


# === date formatters ===


def format_session_time(start: datetime.datetime | None) -> str:
    return start.strftime("%d %B %H:%M") if start else "[NO TIME]"


# === ratio formatters ===


def format_percent(ratio: float | None) -> str:
    if ratio is None:
        return "0%"

    return f"{round(ratio * 100)}%"
