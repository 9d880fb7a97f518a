# models/announcement.py

"""
A portal-wide announcement. Read-only to the engine; consumers always see the
feed newest first.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable

from core.utils import parse_timestamp, to_utc


class Announcement:

    def __init__(self, id: str, date: datetime.datetime | None, text: str):
        self._id = id
        self._date = date
        self._text = text

    @property
    def id(self) -> str:
        return self._id

    @property
    def date(self) -> datetime.datetime | None:
        return self._date

    @property
    def text(self) -> str:
        return self._text

    def to_dict(self) -> dict:
        return {"date": self._date, "text": self._text}

    @classmethod
    def from_dict(cls, data: dict, announcement_id: str | None = None) -> Announcement:
        return cls(
            id=announcement_id or data.get("id", ""),
            date=parse_timestamp(data.get("date")),
            text=data.get("text", ""),
        )

    def __repr__(self) -> str:
        return f"Announcement({self._id}, {self._date}, {self._text!r})"


def newest_first(announcements: Iterable[Announcement]) -> tuple[Announcement, ...]:
    """Orders by date descending; undated announcements go last, ties by id."""
    announcements = list(announcements)
    dated = [a for a in announcements if a.date is not None]
    undated = [a for a in announcements if a.date is None]

    dated.sort(key=lambda a: a.id)
    dated.sort(key=lambda a: to_utc(a.date), reverse=True)
    undated.sort(key=lambda a: a.id)

    return tuple(dated + undated)
