"""Attendance desk schemas package."""

from services.attendance_service.schemas.main import (
    ApiEnvelope,
    AttendanceStatistics,
    AttendanceSubmitRecord,
    BatchHistoryDay,
    BatchHistoryDaySummary,
    BatchHistoryResponse,
    BatchSubmitRequest,
    BulkAssignRequest,
    ConfirmedRecord,
    DateWindowResponse,
    DeskResponse,
    EditEntryRequest,
    EnrolledStudent,
    EntryResponse,
    MarkAllRequest,
    MonthlyBreakdown,
    RecordUpdate,
    SelectRequest,
    StudentHistoryRecord,
    StudentHistoryResponse,
)

__all__ = [
    "ApiEnvelope",
    "AttendanceStatistics",
    "AttendanceSubmitRecord",
    "BatchHistoryDay",
    "BatchHistoryDaySummary",
    "BatchHistoryResponse",
    "BatchSubmitRequest",
    "BulkAssignRequest",
    "ConfirmedRecord",
    "DateWindowResponse",
    "DeskResponse",
    "EditEntryRequest",
    "EnrolledStudent",
    "EntryResponse",
    "MarkAllRequest",
    "MonthlyBreakdown",
    "RecordUpdate",
    "SelectRequest",
    "StudentHistoryRecord",
    "StudentHistoryResponse",
]
