# core/submission_guard.py

"""
The submission workflow guard.

Each (course, submission number, learner) key moves through
`NOT_SUBMITTED -> PENDING_REVIEW -> REVIEWED`. This module performs only the
first transition; the second is made by the grading collaborator writing
non-empty remarks and is only ever read here.
"""

from __future__ import annotations

import datetime
import logging

from core.exceptions import DuplicateSubmission
from core.keys import profile_key, submission_key
from core.response import ErrorCode, Response
from core.store import DocumentStore
from models.submission import Submission, SubmissionStatus

logger = logging.getLogger(__name__)

SUBMISSION_COUNT_FIELD = "submissions"


class SubmissionGuard:
    """
    Enforces at most one submission per key and keeps the learner's counter in step.

    Notes:
        - The existence check and the write are separate store calls. The write
          uses the store's write-if-absent `create()`, so two racing submissions
          for the same key still produce exactly one record.
        - The learner counter is bumped with the store's atomic `increment()`.
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    def submission_state(
        self, course: str, submission_number: int, learner_id: str
    ) -> SubmissionStatus:
        record = self._store.get(submission_key(course, submission_number, learner_id))

        if record is None:
            return SubmissionStatus.NOT_SUBMITTED

        return Submission.from_dict(
            record, course, submission_number, learner_id=learner_id
        ).status

    def require_no_submission(
        self, course: str, submission_number: int, learner_id: str
    ) -> None:
        """
        Raises:
            DuplicateSubmission: If a record already exists for the key.
        """
        if self._store.get(submission_key(course, submission_number, learner_id)) is not None:
            raise DuplicateSubmission(course, submission_number, learner_id)

    def submit_work(
        self,
        course: str,
        submission_number: int,
        learner_id: str,
        name: str,
        title: str,
        description: str,
        link: str,
        submitted_at: datetime.datetime | None = None,
    ) -> Response:
        """
        Records a learner's work for an assignment, at most once per key.

        Args:
            course (str): The course name.
            submission_number (int): The assignment's ordinal within the course.
            learner_id (str): The learner's profile key.
            name (str): The learner's display name, stored on the submission.
            title (str): The assignment title, stored on the submission.
            description (str): The learner's notes.
            link (str): Where the submitted work lives.
            submitted_at (datetime.datetime | None): Defaults to the current time.

        Returns:
            Response: A structured response with the following contract:
                - success (bool):
                    - True if the submission was created and the counter incremented.
                    - False if the key already has a submission or the input is invalid.
                - detail (str | None): Human-readable outcome.
                - error (ErrorCode | str | None):
                    - `ErrorCode.DUPLICATE_SUBMISSION` if the key already has a submission.
                    - `ErrorCode.INVALID_FIELD_VALUE` if the submission number is invalid.
                    - `ErrorCode.FETCH_FAILURE` if the store could not be reached.
                - status_code (int | None):
                    - 201 on success
                    - 409 on duplicate submission
                    - 400 for invalid input
                    - 503 for store failures
                - data (dict | None):
                    - On success:
                        - "record" (Submission): The created submission.

        Notes:
            - A duplicate is terminal for the caller. It is never retried and nothing is written.
            - On success the learner's submission counter is incremented by exactly 1.
        """
        try:
            submission = Submission(
                course=course,
                submission_number=submission_number,
                learner_id=learner_id,
                submitted_at=submitted_at or datetime.datetime.now(datetime.timezone.utc),
                title=title,
                name=name,
                description=description,
                link=link,
                remarks="",
                marks=0.0,
            )

            self.require_no_submission(course, submission.submission_number, learner_id)

            key = submission_key(course, submission.submission_number, learner_id)
            if not self._store.create(key, submission.to_dict()):
                # another submission landed between the check and the write
                raise DuplicateSubmission(course, submission.submission_number, learner_id)

        except DuplicateSubmission as e:
            logger.info("Rejected duplicate submission: %s", e)
            return Response.fail(
                detail=str(e),
                error=ErrorCode.DUPLICATE_SUBMISSION,
                status_code=409,
            )

        except (TypeError, ValueError) as e:
            return Response.fail(
                detail=f"Invalid field value: {e}",
                error=ErrorCode.INVALID_FIELD_VALUE,
            )

        except Exception as e:
            logger.warning("Submission write failed for %s: %r", learner_id, e)
            return Response.fail(
                detail=f"Failed to record submission: {e}",
                error=ErrorCode.FETCH_FAILURE,
                status_code=503,
            )

        warnings = []
        try:
            self._store.increment(profile_key(learner_id), SUBMISSION_COUNT_FIELD, 1)

        except Exception as e:
            warning = f"Submission recorded but the counter for {learner_id} was not updated: {e}"
            logger.warning(warning)
            warnings.append(warning)

        logger.info(
            "Recorded submission %s #%d for %s", course, submission.submission_number, learner_id
        )

        return Response.succeed(
            detail=f"Submission for {course} #{submission.submission_number} recorded.",
            status_code=201,
            data={"record": submission},
            warnings=warnings,
        )
