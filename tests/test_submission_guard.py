# tests/test_submission_guard.py

import datetime
import threading

import pytest
from conftest import LEARNER_ID, LEARNER_NAME

from core.exceptions import DuplicateSubmission
from core.keys import profile_key, submission_key
from core.response import ErrorCode
from core.submission_guard import SubmissionGuard
from models.submission import SubmissionStatus


@pytest.fixture
def guard(store):
    return SubmissionGuard(store)


def submit(guard, course="Web Development", number=2, learner_id=LEARNER_ID):
    return guard.submit_work(
        course=course,
        submission_number=number,
        learner_id=learner_id,
        name=LEARNER_NAME,
        title="Portfolio",
        description="My portfolio",
        link="https://example.com/portfolio",
        submitted_at=datetime.datetime(2024, 5, 1, 12, 0),
    )


def test_submit_work_creates_pending_record(guard, store):
    response = submit(guard)

    assert response.success
    assert response.status_code == 201
    assert response.data["record"].status == SubmissionStatus.PENDING_REVIEW

    record = store.get(submission_key("Web Development", 2, LEARNER_ID))
    assert record["Remarks"] == ""
    assert record["Marks"] == 0.0
    assert record["Submission Link"] == "https://example.com/portfolio"
    assert store.get(profile_key(LEARNER_ID))["submissions"] == 3


def test_duplicate_submission_is_rejected(guard, store):
    first = submit(guard)
    second = submit(guard)

    assert first.success
    assert not second.success
    assert second.error == ErrorCode.DUPLICATE_SUBMISSION
    assert second.status_code == 409
    assert len(store.list("submissions/Web Development/2")) == 1
    assert store.get(profile_key(LEARNER_ID))["submissions"] == 3


def test_existing_record_is_never_overwritten(guard, store):
    before = store.get(submission_key("Web Development", 1, LEARNER_ID))

    response = submit(guard, number=1)

    assert response.error == ErrorCode.DUPLICATE_SUBMISSION
    assert store.get(submission_key("Web Development", 1, LEARNER_ID)) == before


def test_concurrent_submissions_produce_one_record(guard, store):
    results = []

    def worker():
        results.append(submit(guard, number=3))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sum(r.success for r in results) == 1
    assert store.get(profile_key(LEARNER_ID))["submissions"] == 3


def test_submission_state(guard):
    assert guard.submission_state("Web Development", 1, LEARNER_ID) == SubmissionStatus.PENDING_REVIEW
    assert guard.submission_state("Video Editing", 1, LEARNER_ID) == SubmissionStatus.REVIEWED
    assert guard.submission_state("Web Development", 2, LEARNER_ID) == SubmissionStatus.NOT_SUBMITTED


def test_require_no_submission(guard):
    guard.require_no_submission("Web Development", 2, LEARNER_ID)

    with pytest.raises(DuplicateSubmission):
        guard.require_no_submission("Web Development", 1, LEARNER_ID)


def test_invalid_submission_number(guard):
    response = submit(guard, number="two")

    assert response.error == ErrorCode.INVALID_FIELD_VALUE
    assert response.status_code == 400


def test_counter_failure_is_a_warning(store):
    # profile missing, so increment raises
    guard = SubmissionGuard(store)

    response = submit(guard, learner_id="ghost@example.com")

    assert response.success
    assert response.is_partial
    assert store.get(submission_key("Web Development", 2, "ghost@example.com")) is not None
