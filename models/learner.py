# models/learner.py

"""
Represents a learner's profile document.

Stores the identifying fields written at account provisioning (email-like key,
display name, ordinal id), the normalized course enrollment, and the running
count of accepted submissions.

Includes functionality for:
- Normalizing the raw `courses` field through `parse_enrollment()`, keeping its warnings
- Serializing to and from the profile document's field names

Notes:
- `from_dict()` raises `MalformedEnrollment` when the `courses` field is absent.
- The profile is a read-only snapshot; enrollment changes and the submission
  counter are written through the store, never by mutating this object.
"""

from __future__ import annotations

from typing import Any

from core.enrollment import normalize_enrollment, parse_enrollment, serialize_enrollment


class LearnerProfile:

    def __init__(
        self,
        id: str,
        name: str,
        ordinal_id: Any,
        enrolled_courses: tuple[str, ...] = (),
        submission_count: int = 0,
        enrollment_warnings: tuple[str, ...] = (),
    ):
        self._id = id
        self._name = name
        self._ordinal_id = ordinal_id
        self._enrolled_courses = normalize_enrollment(list(enrolled_courses))
        self._enrollment_warnings = tuple(enrollment_warnings)
        self._submission_count = LearnerProfile.validate_submission_count(
            submission_count
        )

    # === properties ===

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def ordinal_id(self) -> Any:
        return self._ordinal_id

    @property
    def enrolled_courses(self) -> tuple[str, ...]:
        return self._enrolled_courses

    @property
    def course_count(self) -> int:
        return len(self._enrolled_courses)

    @property
    def has_enrollment(self) -> bool:
        return bool(self._enrolled_courses)

    @property
    def enrollment_warnings(self) -> tuple[str, ...]:
        return self._enrollment_warnings

    @property
    def submission_count(self) -> int:
        return self._submission_count

    def is_enrolled_in(self, course: str) -> bool:
        return course.strip() in self._enrolled_courses

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "Name": self._name,
            "Id": self._ordinal_id,
            "courses": serialize_enrollment(self._enrolled_courses),
            "submissions": self._submission_count,
        }

    @classmethod
    def from_dict(cls, data: dict, learner_id: str) -> LearnerProfile:
        courses, warnings = parse_enrollment(data.get("courses"))
        return cls(
            id=learner_id,
            name=data.get("Name", ""),
            ordinal_id=data.get("Id"),
            enrolled_courses=courses,
            submission_count=data.get("submissions") or 0,
            enrollment_warnings=tuple(warnings),
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"LearnerProfile({self._id}, {self._name}, {self._ordinal_id}, {self._enrolled_courses}, {self._submission_count})"

    def __str__(self) -> str:
        return f"LEARNER: name: {self._name}, id: {self._ordinal_id}, key: {self._id}"

    # === data validators ===

    @staticmethod
    def validate_submission_count(count: Any) -> int:
        """
        Validates and normalizes a stored submission counter.

        Raises:
            TypeError: If the input cannot be cast to int.
            ValueError: If the input is negative.
        """
        try:
            count = int(count)

        except (TypeError, ValueError):
            raise TypeError("Invalid input. Submission count must be a number.") from None

        if count < 0:
            raise ValueError("Invalid input. Submission count cannot be less than zero.")

        return count
