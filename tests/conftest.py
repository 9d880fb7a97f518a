# tests/conftest.py

from datetime import datetime

import pytest

from core.config import EngineSettings
from core.store import InMemoryDocumentStore
from models.assignment import Assignment
from models.class_session import ClassSession
from models.portal import Portal
from models.submission import Submission

LEARNER_ID = "ada@example.com"
LEARNER_NAME = "Ada Lovelace"


class FlakyStore(InMemoryDocumentStore):
    """An in-memory store whose reads fail for selected keys or collections."""

    def __init__(self, documents=None, failing=()):
        super().__init__(documents)
        self.failing = set(failing)
        self.calls = []

    def _check(self, key):
        self.calls.append(key)
        if key in self.failing:
            raise ConnectionError(f"unreachable: {key}")

    def get(self, key):
        self._check(key)
        return super().get(key)

    def list(self, collection, filters=None, order_by=None, descending=False):
        self._check(collection)
        return super().list(collection, filters, order_by, descending)

    def list_children(self, key):
        self._check(key)
        return super().list_children(key)


def seed_documents():
    return {
        f"users/{LEARNER_ID}": {
            "Name": LEARNER_NAME,
            "Id": 7,
            "courses": "Web Development, Video Editing, Web Development",
            "submissions": 2,
        },
        "users/grace@example.com": {
            "Name": "Grace Hopper",
            "Id": 8,
            "courses": ["Graphic Design"],
            "submissions": 0,
        },
        "users/nobody@example.com": {"Name": "No Courses", "Id": 9},
        "classes/c1": {"course": "Web Development", "time": datetime(2024, 5, 1, 10, 0)},
        "classes/c2": {"course": "Video Editing", "time": datetime(2024, 5, 1, 12, 0)},
        "classes/c3": {"course": "Graphic Design", "time": datetime(2024, 5, 1, 11, 0)},
        "classes/c4": {"course": "Web Development", "time": "not a time"},
        "WD/a1": {
            "course": "Web Development",
            "submissionNumber": 1,
            "title": "Landing page",
            "description": "<p>Build a landing page.</p>",
            "deadline": "2024-05-01",
        },
        "WD/a2": {
            "course": "Web Development",
            "submissionNumber": 2,
            "title": "Portfolio",
            "description": "",
        },
        "VE/v1": {
            "course": "Video Editing",
            "submissionNumber": 1,
            "title": "Cut a trailer",
            "deadline": "2024-04-01",
        },
        f"submissions/Web Development/1/{LEARNER_ID}": {
            "Timestamp": datetime(2024, 1, 1, 9, 0),
            "Title": "Landing page",
            "Email": LEARNER_ID,
            "Name": LEARNER_NAME,
            "Description": "First try",
            "Submission Link": "https://example.com/landing",
            "Remarks": "",
            "Marks": 0,
        },
        f"submissions/Video Editing/1/{LEARNER_ID}": {
            "Timestamp": datetime(2024, 2, 1, 9, 0),
            "Title": "Cut a trailer",
            "Email": LEARNER_ID,
            "Name": LEARNER_NAME,
            "Description": "",
            "Submission Link": "https://example.com/trailer",
            "Remarks": "Great pacing",
            "Marks": 9,
        },
        "attendance_groups/wd-main": {"course": "Web Development"},
        f"attendance/wd-main/s1/{LEARNER_NAME}": {"Total Duration (Minutes)": 45},
        f"attendance/wd-main/s2/{LEARNER_NAME}": {"Total Duration (Minutes)": 30},
        f"attendance/wd-main/s3/{LEARNER_NAME}": {"Total Duration (Minutes)": 50},
        "announcements/n1": {"date": datetime(2024, 6, 23, 19, 48), "text": "Live session"},
        "announcements/n2": {"date": datetime(2024, 6, 25, 9, 0), "text": "New materials"},
        "materials/m1": {"course": "Web Development", "title": "CSS cheatsheet", "link": "https://example.com/css"},
        "materials/m2": {"course": "Graphic Design", "title": "Color theory", "link": "https://example.com/color"},
    }


@pytest.fixture
def store():
    return InMemoryDocumentStore(seed_documents())


@pytest.fixture
def settings():
    return EngineSettings(fetch_timeout_seconds=5.0)


@pytest.fixture
def portal(store, settings):
    return Portal(store, LEARNER_ID, settings)


@pytest.fixture
def now():
    return datetime(2024, 5, 1, 10, 59)


@pytest.fixture
def sample_session():
    return ClassSession("c1", "Web Development", datetime(2024, 5, 1, 10, 0))


@pytest.fixture
def sample_assignment():
    return Assignment(
        course="Web Development",
        submission_number=1,
        title="Landing page",
        description="<p>Build a landing page.</p>",
        deadline=datetime(2024, 5, 1).date(),
    )


@pytest.fixture
def sample_submission():
    return Submission(
        course="Web Development",
        submission_number=1,
        learner_id=LEARNER_ID,
        submitted_at=datetime(2024, 1, 1, 9, 0),
        title="Landing page",
        name=LEARNER_NAME,
        description="First try",
        link="https://example.com/landing",
    )
