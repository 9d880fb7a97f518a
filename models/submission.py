# models/submission.py

"""
Represents a learner's submission for one assignment of one course.

Each `Submission` is identified by the composite key (course, submission number,
learner id) and records when it was submitted, what was submitted, and the
grader's `remarks` and `marks`.

Includes functionality for:
- Deriving the review status from `remarks`
- Validating `marks`
- Serializing to and from the submission document's field names

Notes:
- Empty `remarks` means the submission is waiting for review; any non-empty
  remarks mean it has been reviewed. There is no separate status field.
- `remarks` and `marks` are written by the grading collaborator, never here.
"""

from __future__ import annotations

import datetime
import math
from enum import Enum
from typing import Any

from core.utils import parse_timestamp


class SubmissionStatus(str, Enum):
    NOT_SUBMITTED = "Not submitted"
    PENDING_REVIEW = "Pending review"
    REVIEWED = "Reviewed"


class Submission:

    def __init__(
        self,
        course: str,
        submission_number: int,
        learner_id: str,
        submitted_at: datetime.datetime | None,
        title: str = "",
        name: str = "",
        description: str = "",
        link: str = "",
        remarks: str = "",
        marks: float = 0.0,
    ):
        self._course = course
        self._submission_number = int(submission_number)
        self._learner_id = learner_id
        self._submitted_at = submitted_at
        self._title = title
        self._name = name
        self._description = description
        self._link = link
        self._remarks = "" if remarks is None else str(remarks)
        self._marks = Submission.validate_marks_input(marks)

    # === properties ===

    @property
    def course(self) -> str:
        return self._course

    @property
    def submission_number(self) -> int:
        return self._submission_number

    @property
    def learner_id(self) -> str:
        return self._learner_id

    @property
    def key(self) -> tuple[str, int, str]:
        return (self._course, self._submission_number, self._learner_id)

    @property
    def submitted_at(self) -> datetime.datetime | None:
        return self._submitted_at

    @property
    def title(self) -> str:
        return self._title

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def link(self) -> str:
        return self._link

    @property
    def remarks(self) -> str:
        return self._remarks

    @property
    def marks(self) -> float:
        return self._marks

    @property
    def is_reviewed(self) -> bool:
        return self._remarks.strip() != ""

    @property
    def status(self) -> SubmissionStatus:
        return (
            SubmissionStatus.REVIEWED
            if self.is_reviewed
            else SubmissionStatus.PENDING_REVIEW
        )

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "Timestamp": self._submitted_at,
            "Title": self._title,
            "Email": self._learner_id,
            "Name": self._name,
            "Description": self._description,
            "Submission Link": self._link,
            "Remarks": self._remarks,
            "Marks": self._marks,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        course: str,
        submission_number: int,
        learner_id: str | None = None,
    ) -> Submission:
        return cls(
            course=course,
            submission_number=submission_number,
            learner_id=learner_id or data.get("Email", ""),
            submitted_at=parse_timestamp(data.get("Timestamp")),
            title=data.get("Title", ""),
            name=data.get("Name", ""),
            description=data.get("Description", ""),
            link=data.get("Submission Link", ""),
            remarks=data.get("Remarks"),
            marks=data.get("Marks") or 0.0,
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"Submission({self._course}, {self._submission_number}, {self._learner_id}, {self._submitted_at}, {self.status.value})"

    def __str__(self) -> str:
        return f"SUBMISSION: course: {self._course}, number: {self._submission_number}, learner: {self._learner_id}"

    # === data validators ===

    @staticmethod
    def validate_marks_input(marks: Any) -> float:
        """
        Validates and normalizes input for a `Submission` marks value.

        Accepts any input, and then:
            - Casts to float.
            - Ensures the number is finite.
            - Ensures it is non-negative.

        Raises:
            TypeError: If the input cannot be cast to float.
            ValueError: If the input is non-finite or less than zero.
        """
        try:
            marks = float(marks)

        except (TypeError, ValueError):
            raise TypeError("Invalid input. Marks must be a number.") from None

        if not math.isfinite(marks):
            raise ValueError("Invalid input. Marks must be a finite number.")

        if marks < 0:
            raise ValueError("Invalid input. Marks cannot be less than zero.")

        return marks
