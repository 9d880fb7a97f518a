# models/attendance.py

"""
Attendance records and per-course attendance tallies.

An `AttendanceEntry` is one learner's recorded presence in one session of an
attendance group, as captured by the external attendance tool. An
`AttendanceTally` is the derived per-course count of qualifying sessions over
all sessions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

DURATION_FIELD = "Total Duration (Minutes)"


class AttendanceEntry:

    def __init__(
        self,
        group_id: str,
        session_id: str,
        learner_key: str,
        duration_minutes: float | None,
    ):
        self._group_id = group_id
        self._session_id = session_id
        self._learner_key = learner_key
        self._duration_minutes = duration_minutes

    # === properties ===

    @property
    def group_id(self) -> str:
        return self._group_id

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def learner_key(self) -> str:
        return self._learner_key

    @property
    def duration_minutes(self) -> float | None:
        return self._duration_minutes

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {DURATION_FIELD: self._duration_minutes}

    @classmethod
    def from_dict(
        cls, data: dict, group_id: str, session_id: str, learner_key: str
    ) -> AttendanceEntry:
        return cls(
            group_id=group_id,
            session_id=session_id,
            learner_key=learner_key,
            duration_minutes=AttendanceEntry.parse_duration(data.get(DURATION_FIELD)),
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"AttendanceEntry({self._group_id}, {self._session_id}, {self._learner_key}, {self._duration_minutes})"

    # === data validators ===

    @staticmethod
    def parse_duration(value: Any) -> float | None:
        """
        Reads a stored duration, returning None for anything that is not a finite, non-negative number.
        """
        if value is None or isinstance(value, bool):
            return None

        try:
            minutes = float(value)
        except (TypeError, ValueError):
            return None

        if not math.isfinite(minutes) or minutes < 0:
            return None

        return minutes


@dataclass(frozen=True)
class AttendanceTally:
    course: str
    qualifying: int = 0
    total: int = 0

    def __post_init__(self):
        if self.total < 0 or self.qualifying < 0:
            raise ValueError("Attendance counters cannot be negative.")
        if self.qualifying > self.total:
            raise ValueError("Qualifying sessions cannot exceed total sessions.")

    @property
    def no_sessions(self) -> bool:
        return self.total == 0

    @property
    def ratio(self) -> float | None:
        """`qualifying / total`, or None when there are no sessions."""
        if self.total == 0:
            return None
        return self.qualifying / self.total

    @property
    def percent(self) -> int:
        ratio = self.ratio
        return 0 if ratio is None else round(ratio * 100)
