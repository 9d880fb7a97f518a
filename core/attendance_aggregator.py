# core/attendance_aggregator.py

"""
Attendance ratio aggregation across nested per-session records.

Store layout: each course owns a set of attendance groups
(`attendance_groups/*` filtered by `course`); each group holds sessions
(`attendance/{group}/*`, enumerated with `list_children`); each session holds
one entry per learner (`attendance/{group}/{session}/{learnerKey}`).

Fetching happens in three fan-out stages (courses, groups, sessions), each with
an explicit join. Tallying is a separate pure step over the fetched
`AttendanceSnapshot`, so recomputing from the same snapshot always yields the
same report.

Counting rules:
    - every fetched session adds 1 to the course's total, attended or not;
    - a session adds 1 to qualifying when the learner's entry exists and its
      duration meets the threshold;
    - a group or session that fails to fetch adds nothing to either counter.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from core.fanout import gather_isolated
from core.keys import (
    ATTENDANCE_GROUPS,
    attendance_entry_key,
    attendance_group_key,
)
from core.store import DocumentStore
from models.attendance import AttendanceEntry, AttendanceTally

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_MINUTES = 40.0


@dataclass(frozen=True)
class AttendanceSnapshot:
    """Fetched per-session durations for one learner, keyed by course."""

    durations: dict[str, tuple[float | None, ...]] = field(default_factory=dict)
    partial: bool = False
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class AttendanceReport:
    tallies: dict[str, AttendanceTally] = field(default_factory=dict)
    partial: bool = False
    warnings: tuple[str, ...] = ()

    def for_course(self, course: str) -> AttendanceTally:
        return self.tallies.get(course, AttendanceTally(course=course))


# === pure derivations ===


def tally_sessions(
    course: str,
    durations: Iterable[float | None],
    threshold: float = DEFAULT_THRESHOLD_MINUTES,
) -> AttendanceTally:
    """
    Counts qualifying sessions over all sessions for one course.

    Args:
        course (str): The course the sessions belong to.
        durations (Iterable[float | None]): One value per session; None when the learner has no entry.
        threshold (float): Minimum minutes for a session to qualify.

    Returns:
        AttendanceTally: The course's {qualifying, total}.
    """
    qualifying = 0
    total = 0

    for duration in durations:
        total += 1
        if duration is not None and duration >= threshold:
            qualifying += 1

    return AttendanceTally(course=course, qualifying=qualifying, total=total)


def tally_snapshot(
    snapshot: AttendanceSnapshot,
    threshold: float = DEFAULT_THRESHOLD_MINUTES,
) -> AttendanceReport:
    tallies = {
        course: tally_sessions(course, durations, threshold)
        for course, durations in snapshot.durations.items()
    }

    return AttendanceReport(
        tallies=tallies,
        partial=snapshot.partial,
        warnings=snapshot.warnings,
    )


# === store fetches ===


async def fetch_attendance_snapshot(
    store: DocumentStore,
    courses: Sequence[str],
    learner_key: str,
    timeout: float | None = None,
) -> AttendanceSnapshot:
    """
    Fetches every session duration for `learner_key` across the enrolled courses.

    Notes:
        - Every enrolled course appears in the snapshot, with an empty tuple when nothing could be fetched.
        - Unit failures are logged by the fan-out helper and recorded as warnings.
    """
    warnings: list[str] = []
    partial = False

    # stage 1: one group listing per course
    group_fetch = await gather_isolated(
        {
            course: (lambda course=course: store.list(ATTENDANCE_GROUPS, filters={"course": course}))
            for course in courses
        },
        timeout=timeout,
        label=lambda course: f"attendance groups for {course}",
    )
    warnings.extend(group_fetch.warnings())
    partial = partial or group_fetch.partial

    group_units = {}
    for course in courses:
        for group in group_fetch.results.get(course, []):
            group_id = group["id"]
            group_units[(course, group_id)] = (
                lambda group_id=group_id: store.list_children(attendance_group_key(group_id))
            )

    # stage 2: one session enumeration per group
    session_list_fetch = await gather_isolated(
        group_units,
        timeout=timeout,
        label=lambda key: f"attendance sessions of group {key[1]} ({key[0]})",
    )
    warnings.extend(session_list_fetch.warnings())
    partial = partial or session_list_fetch.partial

    entry_units = {}
    for (course, group_id), session_ids in session_list_fetch.results.items():
        for session_id in session_ids:
            entry_units[(course, group_id, session_id)] = (
                lambda group_id=group_id, session_id=session_id: store.get(
                    attendance_entry_key(group_id, session_id, learner_key)
                )
            )

    # stage 3: one learner-entry lookup per session
    entry_fetch = await gather_isolated(
        entry_units,
        timeout=timeout,
        label=lambda key: f"attendance entry {key[1]}/{key[2]} ({key[0]})",
    )
    warnings.extend(entry_fetch.warnings())
    partial = partial or entry_fetch.partial

    durations: dict[str, list[float | None]] = {course: [] for course in courses}

    for (course, group_id, session_id), record in entry_fetch.results.items():
        if record is None:
            durations[course].append(None)
            continue

        entry = AttendanceEntry.from_dict(record, group_id, session_id, learner_key)
        if entry.duration_minutes is None:
            warning = (
                f"Attendance entry {group_id}/{session_id} for {learner_key} "
                f"has no usable duration."
            )
            logger.warning(warning)
            warnings.append(warning)
        durations[course].append(entry.duration_minutes)

    logger.debug(
        "Fetched attendance for %s: %s",
        learner_key,
        {course: len(values) for course, values in durations.items()},
    )

    return AttendanceSnapshot(
        durations={course: tuple(values) for course, values in durations.items()},
        partial=partial,
        warnings=tuple(warnings),
    )


async def aggregate_attendance(
    store: DocumentStore,
    courses: Sequence[str],
    learner_key: str,
    threshold: float = DEFAULT_THRESHOLD_MINUTES,
    timeout: float | None = None,
) -> AttendanceReport:
    snapshot = await fetch_attendance_snapshot(store, courses, learner_key, timeout)
    return tally_snapshot(snapshot, threshold)


def attendance_percentages(report: AttendanceReport) -> Mapping[str, int]:
    return {course: tally.percent for course, tally in report.tallies.items()}
