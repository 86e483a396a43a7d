"""Contract the attendance desk expects from its backing store."""

from datetime import date
from typing import List, Protocol, Sequence

from services.attendance_service.models import Roster
from services.attendance_service.schemas import (
    AttendanceSubmitRecord,
    BatchHistoryDay,
    ConfirmedRecord,
    RecordUpdate,
    StudentHistoryRecord,
)


class AttendanceBackend(Protocol):
    """Async collaborator owning rosters and persisted attendance.

    Implementations raise ``TransportError`` when a call does not complete.
    An empty list from ``get_confirmed_attendance`` means "nothing saved yet"
    and must never be used to signal a failure.
    """

    async def get_roster(self, group_id: str) -> Roster: ...

    async def get_confirmed_attendance(
        self, group_id: str, attendance_date: date
    ) -> List[ConfirmedRecord]: ...

    async def upsert_batch_attendance(
        self,
        group_id: str,
        attendance_date: date,
        records: Sequence[AttendanceSubmitRecord],
    ) -> None: ...

    async def update_attendance_record(
        self, persisted_id: str, update: RecordUpdate
    ) -> None: ...

    async def get_student_attendance_history(
        self, student_id: str, group_id: str
    ) -> List[StudentHistoryRecord]: ...

    async def get_batch_attendance_history(
        self, group_id: str, start: date, end: date
    ) -> List[BatchHistoryDay]: ...
