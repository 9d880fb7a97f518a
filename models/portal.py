# models/portal.py

"""
The Portal model is the single entry point view code uses to read derived learner state.

A `Portal` is bound to one document store and one learner. `refresh()` fetches
everything the screens need in one concurrent pass and publishes an immutable
`PortalSnapshot`; every screen reads the same snapshot instead of re-deriving
statuses on its own.

Also provides the learner-initiated writes (enrolling in a course, submitting
work, posting to a course board). Every public method returns a `Response` and
never raises.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from core.assignment_status import (
    AssignmentBoard,
    LatestSubmission,
    LatestSubmissionStatus,
    fetch_assignment_board,
)
from core.attendance_aggregator import AttendanceReport, aggregate_attendance
from core.config import EngineSettings, load_settings
from core.enrollment import enroll, serialize_enrollment
from core.exceptions import MalformedEnrollment
from core.fanout import gather_isolated
from core.formatters import (
    format_count_of,
    format_list_with_and,
    format_percent,
    format_session_time,
)
from core.keys import (
    ANNOUNCEMENTS,
    CLASSES,
    MATERIALS,
    course_messages_key,
    join_key,
    profile_key,
)
from core.log import setup_logging
from core.response import ErrorCode, Response
from core.schedule import ScheduleWindow, upcoming_sessions
from core.store import DocumentStore
from core.submission_guard import SubmissionGuard
from core.utils import generate_uuid
from models.announcement import Announcement, newest_first
from models.class_session import ClassSession
from models.learner import LearnerProfile
from models.material import Material
from models.message import CourseMessage, oldest_first
from models.types import RecordType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortalSnapshot:
    learner: LearnerProfile
    taken_at: datetime.datetime
    schedule: ScheduleWindow = field(default_factory=ScheduleWindow)
    assignments: AssignmentBoard = field(default_factory=AssignmentBoard)
    latest_submission: LatestSubmission = field(
        default_factory=lambda: LatestSubmission(status=LatestSubmissionStatus.NO_SUBMISSION)
    )
    attendance: AttendanceReport = field(default_factory=AttendanceReport)
    announcements: tuple[Announcement, ...] = ()
    materials: tuple[Material, ...] = ()
    feed_warnings: tuple[str, ...] = ()

    @property
    def partial(self) -> bool:
        return (
            self.schedule.partial
            or self.assignments.partial
            or self.attendance.partial
            or bool(self.feed_warnings)
        )

    @property
    def warnings(self) -> list[str]:
        return [
            *self.learner.enrollment_warnings,
            *self.schedule.warnings,
            *self.assignments.warnings,
            *self.attendance.warnings,
            *self.feed_warnings,
        ]


class Portal:

    def __init__(
        self,
        store: DocumentStore,
        learner_id: str,
        settings: EngineSettings | None = None,
    ):
        self._store = store
        self._learner_id = learner_id
        self._settings = settings or EngineSettings()
        self._guard = SubmissionGuard(store)
        self._snapshot: PortalSnapshot | None = None
        self._generation = 0

    # === properties ===

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def learner_id(self) -> str:
        return self._learner_id

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def snapshot(self) -> PortalSnapshot | None:
        return self._snapshot

    @property
    def session_duration(self) -> datetime.timedelta:
        return datetime.timedelta(minutes=self._settings.session_duration_minutes)

    # === public classmethods ===

    @classmethod
    def create(
        cls,
        store: DocumentStore,
        learner_id: str,
        settings_path: Path | None = None,
        env_file: Path | None = None,
        configure_logging: bool = False,
    ) -> Response:
        """
        Loads settings and returns a new `Portal` bound to `learner_id`.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): False only when the settings are invalid or unreadable.
                - error (ErrorCode | str | None):
                    - `ErrorCode.INVALID_INPUT` for invalid or unreadable settings.
                - data (dict | None):
                    - On success:
                        - "portal" (Portal): The new portal.
        """
        try:
            settings = load_settings(settings_path, env_file=env_file)

        except (OSError, ValueError) as e:
            return Response.fail(
                detail=f"Could not load engine settings: {e}",
                error=ErrorCode.INVALID_INPUT,
            )

        if configure_logging:
            setup_logging(settings.log_level)

        return Response.succeed(data={"portal": cls(store, learner_id, settings)})

    # === data accessors ===

    def load_learner(self) -> Response:
        """
        Reads and normalizes the learner's profile document.

        Returns:
            Response: A structured response with the following contract:
                - success (bool):
                    - True if the profile was found and its enrollment normalized.
                    - False if the profile is missing, has no courses field, or the store failed.
                - error (ErrorCode | str | None):
                    - `ErrorCode.NOT_FOUND` if no profile document exists.
                    - `ErrorCode.MALFORMED_ENROLLMENT` if the courses field is absent.
                    - `ErrorCode.FETCH_FAILURE` if the store could not be read.
                - status_code (int | None):
                    - 200 on success
                    - 404 if the profile is missing or malformed
                    - 503 on store failure
                - data (dict | None):
                    - On success:
                        - "learner" (LearnerProfile): The normalized profile.
                - warnings (list[str]): Course entries that were dropped while normalizing.

        Notes:
            - A malformed profile is reported to the learner exactly like a missing one.
        """
        try:
            record = self._store.get(profile_key(self._learner_id))

        except Exception as e:
            logger.warning("Profile fetch failed for %s: %r", self._learner_id, e)
            return Response.fail(
                detail="Failed to fetch user data. Please try again.",
                error=ErrorCode.FETCH_FAILURE,
                status_code=503,
            )

        if record is None:
            return Response.fail(
                detail="User data not found.",
                error=ErrorCode.NOT_FOUND,
                status_code=404,
            )

        try:
            learner = LearnerProfile.from_dict(record, self._learner_id)

        except MalformedEnrollment as e:
            logger.warning("Malformed enrollment for %s: %s", self._learner_id, e)
            return Response.fail(
                detail="User data not found.",
                error=ErrorCode.MALFORMED_ENROLLMENT,
                status_code=404,
            )

        except (TypeError, ValueError) as e:
            return Response.fail(
                detail=f"Invalid field value: {e}",
                error=ErrorCode.INVALID_FIELD_VALUE,
                status_code=404,
            )

        return Response.succeed(
            data={"learner": learner}, warnings=list(learner.enrollment_warnings)
        )

    async def refresh(self, now: datetime.datetime | None = None) -> Response:
        """
        Computes a fresh `PortalSnapshot` for the learner and publishes it.

        The schedule, assignment, attendance and feed derivations run concurrently
        and each isolates its own fetch failures.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): False only when the learner profile cannot be loaded.
                - error (ErrorCode | str | None): As for `load_learner()`.
                - data (dict | None):
                    - On success:
                        - "snapshot" (PortalSnapshot): The computed snapshot.
                        - "published" (bool): False when a newer refresh started before this one finished.
                - warnings (list[str]): Every degradation recorded while fetching.

        Notes:
            - Last result wins: a refresh that was superseded returns its snapshot but does not publish it.
        """
        self._generation += 1
        generation = self._generation
        now = now or datetime.datetime.now(datetime.timezone.utc)

        learner_response = await asyncio.to_thread(self.load_learner)
        if not learner_response.success:
            return learner_response

        learner: LearnerProfile = learner_response.data["learner"]
        courses = learner.enrolled_courses
        timeout = self._settings.fetch_timeout_seconds

        schedule, (board, latest), attendance, feeds = await asyncio.gather(
            self._fetch_schedule(courses, now),
            fetch_assignment_board(
                self._store,
                courses,
                learner.id,
                self._settings.course_catalogs,
                now,
                timeout,
            ),
            aggregate_attendance(
                self._store,
                courses,
                self.attendance_key(learner),
                self._settings.attendance_threshold_minutes,
                timeout,
            ),
            self._fetch_feeds(courses),
        )
        announcements, materials, feed_warnings = feeds

        snapshot = PortalSnapshot(
            learner=learner,
            taken_at=now,
            schedule=schedule,
            assignments=board,
            latest_submission=latest,
            attendance=attendance,
            announcements=announcements,
            materials=materials,
            feed_warnings=feed_warnings,
        )

        published = generation == self._generation
        if published:
            self._snapshot = snapshot
        else:
            logger.debug("Discarding superseded refresh %d", generation)

        return Response.succeed(
            data={"snapshot": snapshot, "published": published},
            warnings=snapshot.warnings,
        )

    def attendance_key(self, learner: LearnerProfile) -> str:
        return learner.name or learner.id

    def announcements(self) -> Response:
        """Returns the announcement feed newest first under "announcements"."""
        try:
            records, warnings = self._read_records(ANNOUNCEMENTS, Announcement.from_dict)

        except Exception as e:
            return self._fetch_failed("announcements", e)

        return Response.succeed(
            data={"announcements": newest_first(records)}, warnings=warnings
        )

    def materials(self, courses: tuple[str, ...]) -> Response:
        """Returns materials of the given courses under "materials"."""
        if not courses:
            return Response.succeed(data={"materials": ()})

        try:
            records, warnings = self._read_records(
                MATERIALS, Material.from_dict, filters={"course": list(courses)}
            )

        except Exception as e:
            return self._fetch_failed("materials", e)

        return Response.succeed(data={"materials": tuple(records)}, warnings=warnings)

    def course_messages(self, course: str) -> Response:
        """
        Returns the course's community board oldest first under "messages".

        Fails with `ErrorCode.VALIDATION_FAILED` (403) when the learner is not enrolled.
        """
        learner_response = self._require_enrollment(course)
        if not learner_response.success:
            return learner_response

        try:
            records, warnings = self._read_records(
                course_messages_key(course),
                lambda data, message_id: CourseMessage.from_dict(data, course, message_id),
            )

        except Exception as e:
            return self._fetch_failed(f"messages for {course}", e)

        return Response.succeed(data={"messages": oldest_first(records)}, warnings=warnings)

    def dashboard_summary(self, snapshot: PortalSnapshot | None = None) -> Response:
        """
        Flattens a snapshot into the values the dashboard cards display.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): False only when no snapshot is available yet.
                - error (ErrorCode | str | None):
                    - `ErrorCode.NOT_FOUND` if neither an argument nor a published snapshot exists.
                - data (dict | None):
                    - On success:
                        - "summary" (dict): Display-ready strings and counts.
        """
        snapshot = snapshot or self._snapshot
        if snapshot is None:
            return Response.fail(
                detail="No snapshot has been computed yet.",
                error=ErrorCode.NOT_FOUND,
                status_code=404,
            )

        learner = snapshot.learner
        course_count = learner.course_count
        next_session = snapshot.schedule.next_session
        no_sessions = [
            course
            for course in learner.enrolled_courses
            if snapshot.attendance.for_course(course).no_sessions
        ]

        summary = {
            "name": learner.name,
            "ordinal_id": learner.ordinal_id,
            "courses": list(learner.enrolled_courses),
            "courses_text": format_list_with_and(list(learner.enrolled_courses)),
            "courses_count": format_count_of(course_count, self._settings.max_courses),
            "submissions_count": format_count_of(
                learner.submission_count,
                course_count * self._settings.assignments_per_course,
            ),
            "next_session": (
                {
                    "course": next_session.course,
                    "time": format_session_time(next_session.start),
                    "link": next_session.link,
                }
                if next_session
                else None
            ),
            "attendance": {
                course: format_percent(snapshot.attendance.for_course(course).ratio)
                for course in learner.enrolled_courses
            },
            "no_sessions": no_sessions,
            "latest_submission": snapshot.latest_submission.status,
            "active_assignments": len(snapshot.assignments.active()),
            "partial": snapshot.partial,
        }

        return Response.succeed(data={"summary": summary}, warnings=snapshot.warnings)

    # === data manipulators ===

    def enroll_in_course(self, course: str) -> Response:
        """
        Adds a course to the learner's enrollment and writes it back.

        Returns:
            Response: A structured response with the following contract:
                - success (bool):
                    - True if the learner is enrolled in the course afterwards.
                    - False if the course is unknown, the course limit is reached, or a read/write failed.
                - error (ErrorCode | str | None):
                    - `ErrorCode.INVALID_COURSE_MAPPING` if the course has no assignment catalog.
                    - `ErrorCode.VALIDATION_FAILED` if the learner is already at `max_courses`.
                    - Errors from `load_learner()` are passed through.
                    - `ErrorCode.FETCH_FAILURE` if the write failed.
                - data (dict | None):
                    - On success:
                        - "courses" (tuple[str, ...]): The enrollment after the change.

        Notes:
            - Enrolling twice in the same course succeeds without writing.
            - The stored field is always rewritten in the canonical comma-delimited form.
        """
        course = (course or "").strip()

        if self._settings.catalog_for(course) is None:
            return Response.fail(
                detail=f"Invalid course selected: '{course}'.",
                error=ErrorCode.INVALID_COURSE_MAPPING,
            )

        learner_response = self.load_learner()
        if not learner_response.success:
            return learner_response

        learner: LearnerProfile = learner_response.data["learner"]

        if learner.is_enrolled_in(course):
            return Response.succeed(
                detail=f"Already enrolled in {course}.",
                data={"courses": learner.enrolled_courses},
            )

        if learner.course_count >= self._settings.max_courses:
            return Response.fail(
                detail=f"Cannot enroll in more than {self._settings.max_courses} courses.",
                error=ErrorCode.VALIDATION_FAILED,
            )

        courses = enroll(learner.enrolled_courses, course)

        try:
            self._store.update(
                profile_key(self._learner_id), {"courses": serialize_enrollment(courses)}
            )

        except Exception as e:
            logger.warning("Enrollment write failed for %s: %r", self._learner_id, e)
            return Response.fail(
                detail="Failed to enroll in course. Please try again.",
                error=ErrorCode.FETCH_FAILURE,
                status_code=503,
            )

        logger.info("Enrolled %s in %s", self._learner_id, course)

        return Response.succeed(
            detail=f"Enrolled in {course}.", data={"courses": courses}
        )

    def submit_work(
        self,
        course: str,
        submission_number: int,
        title: str,
        description: str,
        link: str,
        now: datetime.datetime | None = None,
    ) -> Response:
        """
        Submits the learner's work through the `SubmissionGuard`.

        Fails with `ErrorCode.VALIDATION_FAILED` (403) when the learner is not
        enrolled in `course`; otherwise returns the guard's response unchanged.
        """
        learner_response = self._require_enrollment(course)
        if not learner_response.success:
            return learner_response

        learner: LearnerProfile = learner_response.data["learner"]

        return self._guard.submit_work(
            course=course,
            submission_number=submission_number,
            learner_id=learner.id,
            name=learner.name,
            title=title,
            description=description,
            link=link,
            submitted_at=now,
        )

    def post_course_message(
        self, course: str, content: str, now: datetime.datetime | None = None
    ) -> Response:
        """
        Posts a message to a course's community board.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True if the message was written.
                - error (ErrorCode | str | None):
                    - `ErrorCode.VALIDATION_FAILED` if the learner is not enrolled in the course.
                    - `ErrorCode.INVALID_FIELD_VALUE` if the message is empty.
                    - `ErrorCode.FETCH_FAILURE` if the write failed.
                - data (dict | None):
                    - On success:
                        - "record" (CourseMessage): The posted message.
        """
        learner_response = self._require_enrollment(course)
        if not learner_response.success:
            return learner_response

        learner: LearnerProfile = learner_response.data["learner"]

        try:
            message = CourseMessage(
                id=generate_uuid(),
                course=course,
                sender=learner.id,
                name=learner.name,
                content=content,
                timestamp=now or datetime.datetime.now(datetime.timezone.utc),
            )

        except ValueError as e:
            return Response.fail(
                detail=str(e),
                error=ErrorCode.INVALID_FIELD_VALUE,
            )

        try:
            self._store.put(
                join_key(course_messages_key(course), message.id), message.to_dict()
            )

        except Exception as e:
            logger.warning("Message write failed for %s: %r", course, e)
            return Response.fail(
                detail="Failed to send message. Please try again.",
                error=ErrorCode.FETCH_FAILURE,
                status_code=503,
            )

        return Response.succeed(detail="Message posted.", data={"record": message})

    # === helper methods ===

    def _require_enrollment(self, course: str) -> Response:
        learner_response = self.load_learner()
        if not learner_response.success:
            return learner_response

        learner: LearnerProfile = learner_response.data["learner"]

        if not learner.is_enrolled_in(course):
            return Response.fail(
                detail=f"Not enrolled in {course}.",
                error=ErrorCode.VALIDATION_FAILED,
                status_code=403,
            )

        return learner_response

    def _read_records(
        self,
        collection: str,
        factory: Callable[[dict, str], RecordType],
        filters: dict | None = None,
    ) -> tuple[list[RecordType], list[str]]:
        records = []
        warnings = []

        for data in self._store.list(collection, filters=filters):
            try:
                records.append(factory(data, data.get("id", "")))
            except (KeyError, TypeError, ValueError) as e:
                warning = f"Skipped malformed record '{data.get('id')}' in {collection}: {e}"
                logger.warning(warning)
                warnings.append(warning)

        return records, warnings

    def _fetch_failed(self, what: str, error: Exception) -> Response:
        logger.warning("Failed to fetch %s: %r", what, error)
        return Response.fail(
            detail=f"Failed to fetch {what}. Please try again.",
            error=ErrorCode.FETCH_FAILURE,
            status_code=503,
        )

    async def _fetch_schedule(
        self, courses: tuple[str, ...], now: datetime.datetime
    ) -> ScheduleWindow:
        if not courses:
            return ScheduleWindow()

        fetched = await gather_isolated(
            {
                CLASSES: lambda: self._read_records(
                    CLASSES, ClassSession.from_dict, filters={"course": list(courses)}
                )
            },
            timeout=self._settings.fetch_timeout_seconds,
            label=lambda _: "class sessions",
        )

        if CLASSES not in fetched.results:
            return ScheduleWindow(warnings=tuple(fetched.warnings()), partial=True)

        sessions, read_warnings = fetched.results[CLASSES]
        window = upcoming_sessions(sessions, courses, now, self.session_duration)

        return ScheduleWindow(
            upcoming=window.upcoming,
            warnings=(*read_warnings, *window.warnings),
        )

    async def _fetch_feeds(
        self, courses: tuple[str, ...]
    ) -> tuple[tuple[Announcement, ...], tuple[Material, ...], tuple[str, ...]]:
        announcements_response, materials_response = await asyncio.gather(
            asyncio.to_thread(self.announcements),
            asyncio.to_thread(self.materials, courses),
        )

        warnings = [*announcements_response.warnings, *materials_response.warnings]
        for response in (announcements_response, materials_response):
            if not response.success:
                warnings.append(response.detail or str(response))

        return (
            announcements_response.data.get("announcements", ()),
            materials_response.data.get("materials", ()),
            tuple(warnings),
        )
