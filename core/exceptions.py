# core/exceptions.py

"""
Exception types raised by the pure engine helpers.

Facade and workflow methods catch these and translate them into `Response`
objects; nothing here is meant to reach the display layer directly.
"""

from __future__ import annotations


class PortalError(Exception):
    """Base class for all engine errors."""


class MalformedEnrollment(PortalError, ValueError):
    """The learner profile has no usable courses field."""


class DuplicateSubmission(PortalError):
    """A submission already exists for the (course, number, learner) key."""

    def __init__(self, course: str, submission_number: int, learner_id: str):
        self.course = course
        self.submission_number = submission_number
        self.learner_id = learner_id
        super().__init__(
            f"A submission for {course} #{submission_number} by {learner_id} already exists."
        )


class InvalidCourseMapping(PortalError, KeyError):
    """An enrolled course has no assignment catalog mapping."""

    def __init__(self, course: str):
        self.course = course
        super().__init__(course)

    def __str__(self) -> str:
        return f"No assignment catalog is mapped for course '{self.course}'."


class FetchFailure(PortalError):
    """A single fan-out unit could not be fetched from the store."""

    def __init__(self, unit: str, cause: BaseException | None = None):
        self.unit = unit
        self.cause = cause
        reason = f": {cause!r}" if cause is not None else ""
        super().__init__(f"Failed to fetch {unit}{reason}")
