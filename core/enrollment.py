# core/enrollment.py

"""
Enrollment normalization.

The `courses` field of a learner profile has been written both as a single
comma-delimited string and as an array over the portal's lifetime. This module
is the one place that knows about both shapes; everything downstream consumes
the canonical tuple returned by `normalize_enrollment()`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from core.exceptions import MalformedEnrollment

logger = logging.getLogger(__name__)

DELIMITER = ","


def parse_enrollment(raw: Any) -> tuple[tuple[str, ...], list[str]]:
    """
    Canonicalizes a raw courses field and reports the parts that had to be dropped.

    Args:
        raw (Any): A comma-delimited string or an ordered sequence of course names.

    Returns:
        tuple[tuple[str, ...], list[str]]: Trimmed, non-empty course names in order
        of first occurrence, and one data-quality warning per dropped value.

    Raises:
        MalformedEnrollment: Only if the field is absent entirely.

    Notes:
        - Non-string items are skipped. A field of any other type reads as no enrollment.
        - An empty result means "no enrollment" and is not an error.
    """
    if raw is None:
        raise MalformedEnrollment("The learner profile has no courses field.")

    warnings: list[str] = []

    if isinstance(raw, str):
        items: Iterable[Any] = raw.split(DELIMITER)
    elif isinstance(raw, (list, tuple)):
        items = raw
    else:
        warning = f"Ignored courses field of type {type(raw).__name__}."
        logger.warning(warning)
        return (), [warning]

    courses: list[str] = []
    seen: set[str] = set()

    for item in items:
        if not isinstance(item, str):
            warning = f"Ignored course entry {item!r}: not a course name."
            logger.warning(warning)
            warnings.append(warning)
            continue

        course = item.strip()
        if course and course not in seen:
            seen.add(course)
            courses.append(course)

    return tuple(courses), warnings


def normalize_enrollment(raw: Any) -> tuple[str, ...]:
    """Returns the canonical enrollment tuple; see `parse_enrollment()`."""
    return parse_enrollment(raw)[0]


def enroll(courses: Iterable[str], course: str) -> tuple[str, ...]:
    """Returns the enrollment with `course` appended unless already present."""
    return normalize_enrollment([*courses, course])


def serialize_enrollment(courses: Iterable[str]) -> str:
    return ", ".join(normalize_enrollment(list(courses)))
