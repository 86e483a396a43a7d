"""Enum definitions for the attendance desk."""

import enum


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"
    # No session took place. Not an absence.
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def color(self) -> str:
        return STATUS_COLORS[self]

    def next_in_cycle(self) -> "AttendanceStatus":
        """Return the status one toggle further along the operator cycle."""
        index = TOGGLE_CYCLE.index(self)
        return TOGGLE_CYCLE[(index + 1) % len(TOGGLE_CYCLE)]


# Operators memorise this order; do not reorder.
TOGGLE_CYCLE = (
    AttendanceStatus.ABSENT,
    AttendanceStatus.PRESENT,
    AttendanceStatus.LATE,
    AttendanceStatus.EXCUSED,
    AttendanceStatus.CANCELLED,
)

STATUS_COLORS = {
    AttendanceStatus.PRESENT: "success",
    AttendanceStatus.ABSENT: "error",
    AttendanceStatus.LATE: "warning",
    AttendanceStatus.EXCUSED: "info",
    AttendanceStatus.CANCELLED: "grey",
}


class LoadState(str, enum.Enum):
    IDLE = "idle"
    ROSTER_LOADING = "roster_loading"
    SNAPSHOT_LOADING = "snapshot_loading"
    READY = "ready"
    SUBMITTING = "submitting"
    ERROR = "error"


class EmptySnapshotPolicy(str, enum.Enum):
    RESET_ALL = "reset_all"
    PRESERVE_TOUCHED = "preserve_touched"
