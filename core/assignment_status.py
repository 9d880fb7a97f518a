# core/assignment_status.py

"""
Assignment and submission status derivation.

Two independent derivations share the same inputs:
    - the per-assignment lifecycle (Active/Closed), which depends only on the
      deadline and the reference instant, and
    - the learner's latest submission across every course, with its review state.

The async `fetch_*` helpers gather the inputs from the store with one task per
course (catalogs) and one per assignment (submissions). A failing unit omits
only its own slice and marks the result partial.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from core.exceptions import InvalidCourseMapping
from core.fanout import gather_isolated
from core.keys import submission_key
from core.store import DocumentStore
from core.utils import to_utc
from models.assignment import Assignment, AssignmentStatus
from models.submission import Submission, SubmissionStatus

logger = logging.getLogger(__name__)


class LatestSubmissionStatus:
    NO_SUBMISSION = "No submission"
    PENDING_REVIEW = SubmissionStatus.PENDING_REVIEW.value
    REVIEWED = SubmissionStatus.REVIEWED.value


@dataclass(frozen=True)
class LatestSubmission:
    status: str
    submission: Submission | None = None

    @property
    def exists(self) -> bool:
        return self.submission is not None

    @property
    def marks(self) -> float | None:
        if self.submission is None or not self.submission.is_reviewed:
            return None
        return self.submission.marks


@dataclass(frozen=True)
class AssignmentBoardEntry:
    assignment: Assignment
    status: AssignmentStatus
    submission_status: SubmissionStatus
    submission: Submission | None = None


@dataclass(frozen=True)
class AssignmentBoard:
    entries: tuple[AssignmentBoardEntry, ...] = ()
    partial: bool = False
    warnings: tuple[str, ...] = ()
    omitted_courses: tuple[str, ...] = ()

    def for_course(self, course: str) -> tuple[AssignmentBoardEntry, ...]:
        return tuple(e for e in self.entries if e.assignment.course == course)

    def active(self) -> tuple[AssignmentBoardEntry, ...]:
        return tuple(e for e in self.entries if e.status == AssignmentStatus.ACTIVE)


@dataclass(frozen=True)
class CatalogFetch:
    catalogs: dict[str, tuple[Assignment, ...]] = field(default_factory=dict)
    partial: bool = False
    warnings: tuple[str, ...] = ()
    omitted_courses: tuple[str, ...] = ()


@dataclass(frozen=True)
class SubmissionFetch:
    submissions: tuple[Submission, ...] = ()
    partial: bool = False
    warnings: tuple[str, ...] = ()


# === pure derivations ===


def assignment_status(assignment: Assignment, now: datetime.datetime) -> AssignmentStatus:
    return assignment.status_on(now)


def submission_status(submission: Submission | None) -> SubmissionStatus:
    if submission is None:
        return SubmissionStatus.NOT_SUBMITTED

    return submission.status


def latest_submission(submissions: Iterable[Submission]) -> LatestSubmission:
    """
    Selects the submission with the greatest `submitted_at`.

    Ties are broken by (course, submission number), largest wins. Submissions
    without a timestamp are never selected.
    """
    candidates = [s for s in submissions if s.submitted_at is not None]

    if not candidates:
        return LatestSubmission(status=LatestSubmissionStatus.NO_SUBMISSION)

    latest = max(
        candidates,
        key=lambda s: (to_utc(s.submitted_at), s.course, s.submission_number),
    )

    return LatestSubmission(status=latest.status.value, submission=latest)


def build_assignment_board(
    catalogs: Mapping[str, Sequence[Assignment]],
    submissions: Iterable[Submission],
    now: datetime.datetime,
    partial: bool = False,
    warnings: Sequence[str] = (),
    omitted_courses: Sequence[str] = (),
) -> AssignmentBoard:
    """
    Joins catalogs with the learner's submissions into per-assignment statuses.

    Entries keep the order of `catalogs` and are sorted by submission number
    within each course. Lifecycle status never depends on submission state.
    """
    by_key = {(s.course, s.submission_number): s for s in submissions}
    entries: list[AssignmentBoardEntry] = []

    for course, assignments in catalogs.items():
        for assignment in sorted(assignments, key=lambda a: a.submission_number):
            submission = by_key.get((course, assignment.submission_number))
            entries.append(
                AssignmentBoardEntry(
                    assignment=assignment,
                    status=assignment_status(assignment, now),
                    submission_status=submission_status(submission),
                    submission=submission,
                )
            )

    return AssignmentBoard(
        entries=tuple(entries),
        partial=partial,
        warnings=tuple(warnings),
        omitted_courses=tuple(omitted_courses),
    )


# === store fetches ===


def _parse_catalog(course: str, records: Iterable[dict]) -> tuple[tuple[Assignment, ...], list[str]]:
    assignments: list[Assignment] = []
    warnings: list[str] = []

    for record in records:
        try:
            assignment = Assignment.from_dict(record, course=course)
        except (KeyError, TypeError, ValueError) as e:
            warning = f"Skipped malformed assignment '{record.get('id')}' in {course}: {e}"
            logger.warning(warning)
            warnings.append(warning)
            continue

        raw_deadline = record.get("deadline")
        if raw_deadline not in (None, "") and not assignment.has_deadline:
            warning = (
                f"Assignment '{record.get('id')}' in {course} has an unreadable "
                f"deadline {raw_deadline!r}; it is treated as having none."
            )
            logger.warning(warning)
            warnings.append(warning)

        assignments.append(assignment)

    return tuple(assignments), warnings


async def fetch_catalogs(
    store: DocumentStore,
    courses: Sequence[str],
    catalog_map: Mapping[str, str],
    timeout: float | None = None,
) -> CatalogFetch:
    """
    Fetches each enrolled course's assignment catalog concurrently.

    Notes:
        - Courses without a catalog mapping are omitted with an `InvalidCourseMapping` warning.
        - A failing catalog fetch omits that course and marks the result partial.
    """
    warnings: list[str] = []
    omitted: list[str] = []
    units = {}

    for course in courses:
        code = catalog_map.get(course)
        if code is None:
            warning = str(InvalidCourseMapping(course))
            logger.warning(warning)
            warnings.append(warning)
            omitted.append(course)
            continue
        units[course] = lambda code=code: store.list(code)

    fetched = await gather_isolated(
        units, timeout=timeout, label=lambda course: f"assignment catalog for {course}"
    )

    catalogs: dict[str, tuple[Assignment, ...]] = {}
    for course in courses:
        if course not in fetched.results:
            continue
        catalogs[course], parse_warnings = _parse_catalog(course, fetched.results[course])
        warnings.extend(parse_warnings)

    warnings.extend(fetched.warnings())
    omitted.extend(fetched.failures)

    return CatalogFetch(
        catalogs=catalogs,
        partial=fetched.partial,
        warnings=tuple(warnings),
        omitted_courses=tuple(omitted),
    )


async def fetch_learner_submissions(
    store: DocumentStore,
    catalogs: Mapping[str, Sequence[Assignment]],
    learner_id: str,
    timeout: float | None = None,
) -> SubmissionFetch:
    """
    Looks up the learner's submission for every catalogued assignment concurrently.
    """
    units = {
        assignment.key: (
            lambda a=assignment: store.get(
                submission_key(a.course, a.submission_number, learner_id)
            )
        )
        for assignments in catalogs.values()
        for assignment in assignments
    }

    fetched = await gather_isolated(
        units,
        timeout=timeout,
        label=lambda key: f"submission {key[0]} #{key[1]} for {learner_id}",
    )

    submissions: list[Submission] = []
    warnings: list[str] = []

    for (course, number), record in fetched.results.items():
        if record is None:
            continue
        try:
            submissions.append(
                Submission.from_dict(
                    record, course=course, submission_number=number, learner_id=learner_id
                )
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            warning = f"Skipped malformed submission {course} #{number} for {learner_id}: {e}"
            logger.warning(warning)
            warnings.append(warning)

    return SubmissionFetch(
        submissions=tuple(submissions),
        partial=fetched.partial,
        warnings=(*warnings, *fetched.warnings()),
    )


async def fetch_assignment_board(
    store: DocumentStore,
    courses: Sequence[str],
    learner_id: str,
    catalog_map: Mapping[str, str],
    now: datetime.datetime,
    timeout: float | None = None,
) -> tuple[AssignmentBoard, LatestSubmission]:
    """
    Builds the assignment board and the learner's latest submission in one pass.

    Returns:
        tuple[AssignmentBoard, LatestSubmission]: Both derived from the same fetched snapshot.

    Notes:
        - Submissions are looked up only for catalogued assignments. When a course's
          catalog is unmapped or fails to fetch, its submissions cannot compete for
          the latest submission. The board warns about both cases and sets `partial`
          for the fetch failure, which therefore also qualifies the latest submission.
    """
    catalog_fetch = await fetch_catalogs(store, courses, catalog_map, timeout)
    submission_fetch = await fetch_learner_submissions(
        store, catalog_fetch.catalogs, learner_id, timeout
    )

    board = build_assignment_board(
        catalog_fetch.catalogs,
        submission_fetch.submissions,
        now,
        partial=catalog_fetch.partial or submission_fetch.partial,
        warnings=[*catalog_fetch.warnings, *submission_fetch.warnings],
        omitted_courses=catalog_fetch.omitted_courses,
    )

    return board, latest_submission(submission_fetch.submissions)
