# core/schedule.py

"""
Class-session windowing: which enrolled sessions can a learner still join.

A session is upcoming while it has not fully elapsed (`start + duration > now`),
so a class already in progress is still surfaced. Output is ordered by start
time, with course name and session id as deterministic tie-breaks.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from core.utils import to_utc
from models.class_session import DEFAULT_DURATION, ClassSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleWindow:
    upcoming: tuple[ClassSession, ...] = ()
    warnings: tuple[str, ...] = ()
    partial: bool = False

    @property
    def next_session(self) -> ClassSession | None:
        return self.upcoming[0] if self.upcoming else None


def upcoming_sessions(
    sessions: Iterable[ClassSession],
    enrolled: Iterable[str],
    now: datetime.datetime,
    duration: datetime.timedelta = DEFAULT_DURATION,
) -> ScheduleWindow:
    """
    Computes the sessions a learner can still join.

    Args:
        sessions (Iterable[ClassSession]): Candidate sessions, possibly for other courses.
        enrolled (Iterable[str]): The learner's normalized course names.
        now (datetime.datetime): The reference instant.
        duration (datetime.timedelta): Fixed length of every session.

    Returns:
        ScheduleWindow: Upcoming sessions sorted by (start, course, id), plus data-quality warnings.

    Notes:
        - Sessions without a resolvable start are excluded and reported, never surfaced.
        - This function is pure; the same inputs always produce the same window.
    """
    enrolled_set = set(enrolled)
    upcoming: list[ClassSession] = []
    warnings: list[str] = []

    for session in sessions:
        if session.course not in enrolled_set:
            continue

        if not session.has_start:
            warning = (
                f"Class session '{session.id}' for {session.course} has an "
                f"unresolvable start time: {session.raw_time!r}."
            )
            logger.warning(warning)
            warnings.append(warning)
            continue

        if session.is_upcoming(now, duration):
            upcoming.append(session)

    upcoming.sort(key=lambda s: (to_utc(s.start), s.course, s.id))

    return ScheduleWindow(upcoming=tuple(upcoming), warnings=tuple(warnings))
