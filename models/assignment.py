# models/assignment.py

"""
The Assignment model represents one entry of a course's assignment catalog.

Assignments are identified within a course by their ordinal `submission_number`.
The optional `deadline` is a calendar date and is inclusive of the whole day.
"""

from __future__ import annotations

import datetime
from enum import Enum
from typing import Any

from core.utils import parse_date


class AssignmentStatus(str, Enum):
    ACTIVE = "Active"
    CLOSED = "Closed"


class Assignment:

    def __init__(
        self,
        course: str,
        submission_number: int,
        title: str,
        description: str = "",
        deadline: datetime.date | None = None,
    ):
        self._course = course
        self._submission_number = Assignment.validate_submission_number(
            submission_number
        )
        self._title = title
        self._description = description
        self._deadline = deadline

    @property
    def course(self) -> str:
        return self._course

    @property
    def submission_number(self) -> int:
        return self._submission_number

    @property
    def key(self) -> tuple[str, int]:
        return (self._course, self._submission_number)

    @property
    def title(self) -> str:
        return self._title

    @property
    def description(self) -> str:
        return self._description

    @property
    def deadline(self) -> datetime.date | None:
        return self._deadline

    @property
    def deadline_iso(self) -> str | None:
        return self._deadline.isoformat() if self._deadline else None

    @property
    def has_deadline(self) -> bool:
        return self._deadline is not None

    def status_on(self, now: datetime.datetime) -> AssignmentStatus:
        """Active through the entire deadline day; always Active without a deadline."""
        if self._deadline is None or now.date() <= self._deadline:
            return AssignmentStatus.ACTIVE

        return AssignmentStatus.CLOSED

    def to_dict(self) -> dict:
        return {
            "course": self._course,
            "submissionNumber": self._submission_number,
            "title": self._title,
            "description": self._description,
            "deadline": self.deadline_iso,
        }

    @classmethod
    def from_dict(cls, data: dict, course: str | None = None) -> Assignment:
        return cls(
            course=(course or data.get("course") or "").strip(),
            submission_number=data["submissionNumber"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            deadline=parse_date(data.get("deadline")),
        )

    def __repr__(self) -> str:
        return f"Assignment({self._course}, {self._submission_number}, {self._title}, {self.deadline_iso})"

    def __str__(self) -> str:
        return f"ASSIGNMENT: {self._title} - ({self._course} #{self._submission_number})"

    # === data validators ===

    @staticmethod
    def validate_submission_number(number: Any) -> int:
        """
        Validates and normalizes an `Assignment` submission number.

        Accepts any input, and then:
            - Casts to int.
            - Ensures it is at least 1.

        Raises:
            TypeError: If the input cannot be cast to int.
            ValueError: If the number is less than one.
        """
        if isinstance(number, bool):
            raise TypeError("Invalid input. Submission number must be a whole number.")

        try:
            number = int(number)

        except (TypeError, ValueError):
            raise TypeError("Invalid input. Submission number must be a whole number.")

        if number < 1:
            raise ValueError("Invalid input. Submission number must be at least 1.")

        return number
