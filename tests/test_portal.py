# tests/test_portal.py

import asyncio
import datetime

from conftest import LEARNER_ID, LEARNER_NAME, FlakyStore, seed_documents

from core.config import EngineSettings
from core.keys import profile_key
from core.response import ErrorCode
from core.store import InMemoryDocumentStore
from models.portal import Portal


def refresh(portal, now):
    return asyncio.run(portal.refresh(now))


# === learner profile ===


def test_load_learner(portal):
    response = portal.load_learner()

    assert response.success
    learner = response.data["learner"]
    assert learner.name == LEARNER_NAME
    assert learner.enrolled_courses == ("Web Development", "Video Editing")


def test_load_missing_learner(store, settings):
    response = Portal(store, "ghost@example.com", settings).load_learner()

    assert response.error == ErrorCode.NOT_FOUND
    assert response.status_code == 404
    assert response.detail == "User data not found."


def test_load_learner_without_courses(store, settings):
    response = Portal(store, "nobody@example.com", settings).load_learner()

    assert response.error == ErrorCode.MALFORMED_ENROLLMENT
    assert response.detail == "User data not found."


def test_load_learner_store_failure(settings):
    store = FlakyStore(seed_documents(), failing={profile_key(LEARNER_ID)})

    response = Portal(store, LEARNER_ID, settings).load_learner()

    assert response.error == ErrorCode.FETCH_FAILURE
    assert response.status_code == 503


# === refresh ===


def test_refresh_publishes_snapshot(portal, now):
    response = refresh(portal, now)

    assert response.success
    assert response.data["published"]
    snapshot = response.data["snapshot"]
    assert portal.snapshot is snapshot

    assert [s.id for s in snapshot.schedule.upcoming] == ["c1", "c2"]
    assert any("c4" in w for w in snapshot.warnings)
    assert len(snapshot.assignments.active()) == 2
    assert snapshot.latest_submission.submission.course == "Video Editing"
    assert snapshot.attendance.for_course("Web Development").total == 3
    assert [a.id for a in snapshot.announcements] == ["n2", "n1"]
    assert [m.id for m in snapshot.materials] == ["m1"]
    assert not snapshot.partial


def test_refresh_without_enrollment_fails(store, settings, now):
    response = refresh(Portal(store, "nobody@example.com", settings), now)

    assert not response.success
    assert response.error == ErrorCode.MALFORMED_ENROLLMENT


def test_refresh_isolates_failing_schedule(settings, now):
    store = FlakyStore(seed_documents(), failing={"classes"})
    portal = Portal(store, LEARNER_ID, settings)

    response = refresh(portal, now)

    snapshot = response.data["snapshot"]
    assert response.success
    assert response.is_partial
    assert snapshot.partial
    assert snapshot.schedule.upcoming == ()
    assert snapshot.attendance.for_course("Web Development").total == 3
    assert len(snapshot.assignments.entries) == 3


def test_last_refresh_wins(portal):
    early = datetime.datetime(2024, 5, 1, 9, 0)
    late = datetime.datetime(2024, 5, 1, 13, 0)

    async def both():
        return await asyncio.gather(portal.refresh(early), portal.refresh(late))

    first, second = asyncio.run(both())

    assert not first.data["published"]
    assert second.data["published"]
    assert portal.snapshot.taken_at == late


def test_recomputing_from_same_store_is_stable(portal, now):
    first = refresh(portal, now).data["snapshot"]
    second = refresh(portal, now).data["snapshot"]

    assert first.attendance == second.attendance
    assert first.latest_submission.status == second.latest_submission.status
    assert [s.id for s in first.schedule.upcoming] == [s.id for s in second.schedule.upcoming]


# === dashboard ===


def test_dashboard_summary(portal, now):
    refresh(portal, now)

    summary = portal.dashboard_summary().data["summary"]

    assert summary["name"] == LEARNER_NAME
    assert summary["courses_text"] == "Web Development and Video Editing"
    assert summary["courses_count"] == "(2/3)"
    assert summary["submissions_count"] == "(2/6)"
    assert summary["next_session"] == {
        "course": "Web Development",
        "time": "01 May 10:00",
        "link": None,
    }
    assert summary["attendance"] == {"Web Development": "67%", "Video Editing": "0%"}
    assert summary["no_sessions"] == ["Video Editing"]
    assert summary["latest_submission"] == "Reviewed"
    assert summary["active_assignments"] == 2
    assert summary["partial"] is False


def test_dashboard_summary_before_refresh(portal):
    response = portal.dashboard_summary()

    assert response.error == ErrorCode.NOT_FOUND


# === enrollment ===


def test_enroll_in_course(portal, store):
    response = portal.enroll_in_course("Graphic Design")

    assert response.success
    assert response.data["courses"] == ("Web Development", "Video Editing", "Graphic Design")
    assert store.get(profile_key(LEARNER_ID))["courses"] == (
        "Web Development, Video Editing, Graphic Design"
    )


def test_enroll_twice_does_not_write(portal, store):
    before = store.get(profile_key(LEARNER_ID))

    response = portal.enroll_in_course("Web Development")

    assert response.success
    assert store.get(profile_key(LEARNER_ID)) == before


def test_enroll_in_unknown_course(portal):
    response = portal.enroll_in_course("Pottery")

    assert response.error == ErrorCode.INVALID_COURSE_MAPPING


def test_enroll_respects_course_limit(store):
    portal = Portal(store, LEARNER_ID, EngineSettings(max_courses=2))

    response = portal.enroll_in_course("Graphic Design")

    assert response.error == ErrorCode.VALIDATION_FAILED


# === submissions ===


def test_submit_work_through_portal(portal, store):
    response = portal.submit_work(
        "Web Development", 2, "Portfolio", "", "https://example.com/p",
        now=datetime.datetime(2024, 5, 1, 12, 0),
    )

    assert response.status_code == 201
    assert response.data["record"].name == LEARNER_NAME
    assert store.get(profile_key(LEARNER_ID))["submissions"] == 3


def test_submit_work_requires_enrollment(portal):
    response = portal.submit_work("Graphic Design", 1, "Poster", "", "https://example.com/x")

    assert response.error == ErrorCode.VALIDATION_FAILED
    assert response.status_code == 403


def test_submit_twice_through_portal(portal):
    args = ("Web Development", 1, "Landing page", "", "https://example.com/l")

    assert portal.submit_work(*args).error == ErrorCode.DUPLICATE_SUBMISSION


# === feeds and course board ===


def test_announcements_newest_first(portal):
    response = portal.announcements()

    assert [a.text for a in response.data["announcements"]] == ["New materials", "Live session"]


def test_materials_for_courses(portal):
    assert portal.materials(()).data["materials"] == ()
    assert [m.title for m in portal.materials(("Graphic Design",)).data["materials"]] == [
        "Color theory"
    ]


def test_post_and_read_course_messages(portal):
    portal.post_course_message("Web Development", "Second", now=datetime.datetime(2024, 5, 2))
    portal.post_course_message("Web Development", " First ", now=datetime.datetime(2024, 5, 1))

    messages = portal.course_messages("Web Development").data["messages"]

    assert [m.content for m in messages] == ["First", "Second"]
    assert messages[0].sender == LEARNER_ID


def test_empty_message_is_rejected(portal):
    response = portal.post_course_message("Web Development", "   ")

    assert response.error == ErrorCode.INVALID_FIELD_VALUE


def test_course_board_requires_enrollment(portal):
    assert portal.course_messages("Graphic Design").status_code == 403
    assert portal.post_course_message("Graphic Design", "Hi").status_code == 403


# === construction ===


def test_create_with_defaults(store):
    response = Portal.create(store, LEARNER_ID)

    assert response.success
    assert response.data["portal"].settings.max_courses == 3


def test_create_with_missing_settings_file(store, tmp_path):
    response = Portal.create(store, LEARNER_ID, settings_path=tmp_path / "missing.yaml")

    assert response.error == ErrorCode.INVALID_INPUT


# === messy store data ===


def test_refresh_survives_malformed_submission(settings, now):
    documents = seed_documents()
    documents[f"submissions/Video Editing/1/{LEARNER_ID}"]["Marks"] = "A+"
    portal = Portal(InMemoryDocumentStore(documents), LEARNER_ID, settings)

    response = refresh(portal, now)

    assert response.success
    assert portal.snapshot.latest_submission.submission.course == "Web Development"
    assert any("Video Editing #1" in w for w in response.warnings)


def test_announcements_with_stored_timestamp_dates(store, portal):
    store.put("announcements/n1", {"date": {"seconds": 1719172080, "nanoseconds": 0}, "text": "Live session"})
    store.put("announcements/n2", {"date": {"seconds": 1719306000, "nanoseconds": 0}, "text": "New materials"})

    response = portal.announcements()

    assert response.success
    assert [a.id for a in response.data["announcements"]] == ["n2", "n1"]


def test_course_messages_with_mixed_timestamps(store, portal):
    board = "messages/Web Development/courseMessages"
    store.put(f"{board}/m1", {"sender": "x", "content": "Later", "timestamp": datetime.datetime(2024, 5, 2)})
    store.put(
        f"{board}/m2",
        {"sender": "y", "content": "Earlier", "timestamp": datetime.datetime(2024, 5, 1, tzinfo=datetime.timezone.utc)},
    )
    store.put(f"{board}/m3", {"sender": "z", "content": "Stamped", "timestamp": {"seconds": 1714557600, "nanoseconds": 0}})

    response = portal.course_messages("Web Development")

    assert response.success
    assert [m.content for m in response.data["messages"]] == ["Earlier", "Stamped", "Later"]


def test_stray_course_entry_does_not_hide_profile(store, settings):
    store.update(profile_key(LEARNER_ID), {"courses": ["Web Development", None]})

    response = Portal(store, LEARNER_ID, settings).load_learner()

    assert response.success
    assert response.data["learner"].enrolled_courses == ("Web Development",)
    assert response.is_partial
