from datetime import date
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from services.attendance_service.models.enums import AttendanceStatus, LoadState

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Backend wire shapes
# ---------------------------------------------------------------------------


class ApiEnvelope(BaseModel, Generic[T]):
    """Standard ``{success, message, data}`` response wrapper."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class EnrolledStudent(BaseModel):
    id: str = Field(alias="_id")
    name: str = ""
    email: str = ""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ConfirmedRecord(BaseModel):
    """One row of the confirmed snapshot for a (group, date)."""

    persisted_id: Optional[str] = Field(default=None, alias="_id")
    student_id: str = Field(alias="studentId")
    status: AttendanceStatus = AttendanceStatus.ABSENT
    remarks: str = ""
    student_name: Optional[str] = Field(default=None, alias="studentName")
    student_email: Optional[str] = Field(default=None, alias="studentEmail")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("student_id", mode="before")
    @classmethod
    def unwrap_populated_student(cls, v: Any) -> Any:
        # Populated references arrive as {"_id": ..., "name": ...}
        if isinstance(v, dict):
            return v.get("_id")
        return v

    @field_validator("remarks", mode="before")
    @classmethod
    def none_remarks_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class AttendanceSubmitRecord(BaseModel):
    student_id: str = Field(alias="studentId")
    status: AttendanceStatus
    remarks: str = ""

    model_config = ConfigDict(populate_by_name=True)


class BatchSubmitRequest(BaseModel):
    date: date
    records: List[AttendanceSubmitRecord]

    model_config = ConfigDict(populate_by_name=True)


class RecordUpdate(BaseModel):
    status: AttendanceStatus
    remarks: str = ""


class StudentHistoryRecord(BaseModel):
    persisted_id: Optional[str] = Field(default=None, alias="_id")
    date: date
    status: AttendanceStatus
    batch_id: Optional[str] = Field(default=None, alias="batchId")
    batch_name: Optional[str] = Field(default=None, alias="batchName")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("date", mode="before")
    @classmethod
    def trim_timestamp(cls, v: Any) -> Any:
        # Stored as midnight timestamps, e.g. "2024-03-01T00:00:00.000Z"
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v

    @field_validator("batch_id", mode="before")
    @classmethod
    def unwrap_populated_batch(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return v.get("_id")
        return v


class BatchHistoryDay(BaseModel):
    date: date
    records: List[ConfirmedRecord] = []


# ---------------------------------------------------------------------------
# Desk surface shapes
# ---------------------------------------------------------------------------


class EntryResponse(BaseModel):
    student_id: str
    name: str = ""
    email: str = ""
    status: AttendanceStatus
    status_label: str
    status_color: str
    remarks: str = ""
    persisted_id: Optional[str] = None
    is_virtual: bool = True


class DeskResponse(BaseModel):
    state: LoadState
    group_id: Optional[str] = None
    selected_date: Optional[date] = None
    entries: List[EntryResponse] = []
    touched: List[str] = []
    error: Optional[str] = None
    conflict: Optional[str] = None


class SelectRequest(BaseModel):
    group_id: str
    date: date


class BulkAssignRequest(BaseModel):
    student_ids: List[str]
    status: AttendanceStatus


class MarkAllRequest(BaseModel):
    status: AttendanceStatus


class EditEntryRequest(BaseModel):
    status: AttendanceStatus
    # Omitted remarks keep the entry's current remarks
    remarks: Optional[str] = None


class DateWindowResponse(BaseModel):
    min_date: date
    max_date: date
    today: date


class MonthlyBreakdown(BaseModel):
    month: str
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    cancelled: int = 0
    total: int = 0
    present_percentage: int = 0


class AttendanceStatistics(BaseModel):
    """Attendance summary for one student in one group.

    Cancelled sessions are counted in ``cancelled`` but excluded from
    ``total_classes`` and every percentage.
    """

    present_percentage: int = 0
    absent_percentage: int = 0
    late_percentage: int = 0
    excused_percentage: int = 0
    total_classes: int = 0
    cancelled: int = 0
    monthly_breakdown: List[MonthlyBreakdown] = []


class StudentHistoryResponse(BaseModel):
    student_id: str
    group_id: str
    records: List[StudentHistoryRecord]
    statistics: AttendanceStatistics


class BatchHistoryDaySummary(BaseModel):
    date: date
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    cancelled: int = 0
    records: List[ConfirmedRecord] = []


class BatchHistoryResponse(BaseModel):
    group_id: str
    start_date: date
    end_date: date
    days: List[BatchHistoryDaySummary]
