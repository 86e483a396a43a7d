"""Error taxonomy for the attendance desk.

Everything deriving from ``AttendanceError`` is scoped to the current
(group, date) selection and recoverable by the operator. ``RosterIntegrityError``
signals a programming mistake and is deliberately outside that hierarchy.
"""

from typing import Optional


class AttendanceError(Exception):
    """Base exception for recoverable attendance desk failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(AttendanceError):
    """Rejected action: out-of-window date, empty roster or invalid status.

    Prior state is kept unchanged.
    """


class TransportError(AttendanceError):
    """A fetch or write against the backing store failed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[dict] = None,
    ):
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


class ConflictError(AttendanceError):
    """Confirmed state differs from what this desk last submitted.

    Raised into the session's conflict slot rather than thrown; the confirmed
    values have already replaced the draft.
    """

    def __init__(self, message: str, student_ids: Optional[list] = None):
        self.student_ids = list(student_ids or [])
        super().__init__(message)


class StateTransitionError(AttendanceError):
    """The load controller was asked for a transition its current state forbids."""


class RosterIntegrityError(RuntimeError):
    """A draft operation referenced a student outside the live roster."""
