# models/class_session.py

"""
A scheduled live class for a course.

Sessions are immutable once scheduled. Every session lasts a fixed duration, so
its end is derived from `start` rather than stored.
"""

from __future__ import annotations

import datetime

from core.utils import parse_timestamp, to_utc

DEFAULT_DURATION = datetime.timedelta(hours=1)


class ClassSession:

    def __init__(
        self,
        id: str,
        course: str,
        start: datetime.datetime | None,
        link: str | None = None,
        raw_time: object = None,
    ):
        self._id = id
        self._course = course
        self._start = start
        self._link = link
        # kept so a data-quality warning can show what was actually stored
        self._raw_time = raw_time

    # === properties ===

    @property
    def id(self) -> str:
        return self._id

    @property
    def course(self) -> str:
        return self._course

    @property
    def start(self) -> datetime.datetime | None:
        return self._start

    @property
    def link(self) -> str | None:
        return self._link

    @property
    def raw_time(self) -> object:
        return self._raw_time

    @property
    def has_start(self) -> bool:
        return self._start is not None

    def end(
        self, duration: datetime.timedelta = DEFAULT_DURATION
    ) -> datetime.datetime | None:
        return self._start + duration if self._start is not None else None

    def is_upcoming(
        self,
        now: datetime.datetime,
        duration: datetime.timedelta = DEFAULT_DURATION,
    ) -> bool:
        end = self.end(duration)
        return end is not None and to_utc(end) > to_utc(now)

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "course": self._course,
            "time": self._start.isoformat() if self._start else self._raw_time,
            "link": self._link,
        }

    @classmethod
    def from_dict(cls, data: dict, session_id: str | None = None) -> ClassSession:
        raw_time = data.get("time")
        return cls(
            id=session_id or data.get("id", ""),
            course=(data.get("course") or "").strip(),
            start=parse_timestamp(raw_time),
            link=data.get("link"),
            raw_time=raw_time,
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"ClassSession({self._id}, {self._course}, {self._start}, {self._link})"

    def __str__(self) -> str:
        return f"CLASS SESSION: course: {self._course}, start: {self._start}, id: {self._id}"
