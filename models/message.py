# models/message.py

"""
A message on a course's community board.

Messages are posted by enrolled learners and read back oldest first, so a board
renders as a conversation.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable

from core.utils import parse_timestamp, to_utc


class CourseMessage:

    def __init__(
        self,
        id: str,
        course: str,
        sender: str,
        name: str,
        content: str,
        timestamp: datetime.datetime | None,
    ):
        self._id = id
        self._course = course
        self._sender = sender
        self._name = name
        self._content = CourseMessage.validate_content_input(content)
        self._timestamp = timestamp

    # === properties ===

    @property
    def id(self) -> str:
        return self._id

    @property
    def course(self) -> str:
        return self._course

    @property
    def sender(self) -> str:
        return self._sender

    @property
    def name(self) -> str:
        return self._name

    @property
    def content(self) -> str:
        return self._content

    @property
    def timestamp(self) -> datetime.datetime | None:
        return self._timestamp

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "sender": self._sender,
            "name": self._name,
            "content": self._content,
            "timestamp": self._timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict, course: str, message_id: str | None = None) -> CourseMessage:
        return cls(
            id=message_id or data.get("id", ""),
            course=course,
            sender=data.get("sender", ""),
            name=data.get("name", ""),
            content=data.get("content", ""),
            timestamp=parse_timestamp(data.get("timestamp")),
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"CourseMessage({self._id}, {self._course}, {self._sender}, {self._timestamp})"

    def __str__(self) -> str:
        return f"{self._name}: {self._content}"

    # === data validators ===

    @staticmethod
    def validate_content_input(content: str) -> str:
        """
        Strips surrounding whitespace and rejects empty messages.

        Raises:
            ValueError: If nothing remains after stripping.
        """
        content = (content or "").strip()
        if not content:
            raise ValueError("Invalid input. A message cannot be empty.")
        return content


def oldest_first(messages: Iterable[CourseMessage]) -> tuple[CourseMessage, ...]:
    """Orders by timestamp ascending; untimed messages go last, ties by id."""
    messages = list(messages)
    timed = [m for m in messages if m.timestamp is not None]
    untimed = [m for m in messages if m.timestamp is None]

    timed.sort(key=lambda m: (to_utc(m.timestamp), m.id))
    untimed.sort(key=lambda m: m.id)

    return tuple(timed + untimed)
