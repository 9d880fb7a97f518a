# core/keys.py

"""
Document store key builders.

Every key is a `/`-separated path: even segments name collections, odd
segments name documents.
"""

USERS = "users"
CLASSES = "classes"
ANNOUNCEMENTS = "announcements"
MATERIALS = "materials"
SUBMISSIONS = "submissions"
ATTENDANCE = "attendance"
ATTENDANCE_GROUPS = "attendance_groups"
MESSAGES = "messages"


def join_key(*segments: object) -> str:
    parts = [str(segment).strip("/") for segment in segments]
    if any(part == "" for part in parts):
        raise ValueError(f"Key segments cannot be empty: {segments!r}")
    return "/".join(parts)


def profile_key(learner_id: str) -> str:
    return join_key(USERS, learner_id)


def submission_key(course: str, submission_number: int, learner_id: str) -> str:
    return join_key(SUBMISSIONS, course, submission_number, learner_id)


def attendance_group_key(group_id: str) -> str:
    return join_key(ATTENDANCE, group_id)


def attendance_entry_key(group_id: str, session_id: str, learner_key: str) -> str:
    return join_key(ATTENDANCE, group_id, session_id, learner_key)


def course_messages_key(course: str) -> str:
    return join_key(MESSAGES, course, "courseMessages")
