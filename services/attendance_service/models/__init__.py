"""Attendance desk models package."""

from services.attendance_service.models.core import (
    VIRTUAL,
    AttendanceEntry,
    Draft,
    DraftKey,
    Persisted,
    Persistence,
    Roster,
    RosterMember,
    Virtual,
)
from services.attendance_service.models.enums import (
    TOGGLE_CYCLE,
    AttendanceStatus,
    EmptySnapshotPolicy,
    LoadState,
)

__all__ = [
    "AttendanceEntry",
    "AttendanceStatus",
    "Draft",
    "DraftKey",
    "EmptySnapshotPolicy",
    "LoadState",
    "Persisted",
    "Persistence",
    "Roster",
    "RosterMember",
    "TOGGLE_CYCLE",
    "VIRTUAL",
    "Virtual",
]
