"""
HTTP client for the attendance backend.

Provides async methods for:
- Fetching a batch roster (enrolled students)
- Fetching the confirmed attendance snapshot for a batch and date
- Submitting a batch of attendance records (full replace per date)
- Updating a single persisted attendance record
- Reading per-student and per-batch attendance history
"""

from datetime import date
from typing import Any, List, Optional, Sequence

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger
from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaValidationError
from services.attendance_service.exceptions import TransportError
from services.attendance_service.models import Roster, RosterMember
from services.attendance_service.schemas import (
    ApiEnvelope,
    AttendanceSubmitRecord,
    BatchHistoryDay,
    BatchSubmitRequest,
    ConfirmedRecord,
    EnrolledStudent,
    RecordUpdate,
    StudentHistoryRecord,
)

logger = get_logger(__name__)

_envelope = TypeAdapter(ApiEnvelope[Any])
_confirmed_rows = TypeAdapter(List[ConfirmedRecord])
_enrolled_students = TypeAdapter(List[EnrolledStudent])
_student_history = TypeAdapter(List[StudentHistoryRecord])
_batch_history = TypeAdapter(List[BatchHistoryDay])


class AttendanceApiClient:
    """Async client for the batch attendance REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.ATTENDANCE_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self._transport = transport
        token = token if token is not None else settings.ATTENDANCE_API_TOKEN
        self._headers = {"Content-Type": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    async def _request(
        self,
        method: str,
        path: str,
        params: dict = None,
        json_data: Any = None,
        allow_not_found: bool = False,
    ) -> Any:
        """Make a request and return the envelope's ``data`` member.

        Returns None for a 404 when ``allow_not_found`` is set.
        """
        url = f"{self.base_url}{path}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._headers,
                    params=params,
                    json=json_data,
                )
        except httpx.HTTPError as exc:
            logger.error("Attendance API %s %s failed: %s", method, path, exc)
            raise TransportError(f"Could not reach attendance service: {exc}") from exc

        if response.status_code == 404 and allow_not_found:
            return None

        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {"data": data}

        if not response.is_success:
            logger.error(
                "Attendance API error: %s %s -> %s %s",
                method,
                path,
                response.status_code,
                data,
                extra={"status_code": response.status_code},
            )
            raise TransportError(
                data.get("message", f"Attendance request failed ({response.status_code})"),
                status_code=response.status_code,
                response_data=data,
            )

        envelope = self._parse(_envelope, data, "response envelope")
        if not envelope.success:
            raise TransportError(
                envelope.message or "Attendance request failed",
                status_code=response.status_code,
                response_data=data,
            )

        return envelope.data

    @staticmethod
    def _parse(adapter: TypeAdapter, payload: Any, what: str) -> Any:
        try:
            return adapter.validate_python([] if payload is None else payload)
        except SchemaValidationError as exc:
            raise TransportError(f"Malformed {what} payload: {exc}") from exc

    # =========================================================================
    # Roster
    # =========================================================================

    async def get_roster(self, group_id: str) -> Roster:
        """
        Fetch the students currently enrolled in a batch.

        Args:
            group_id: Batch identifier

        Returns:
            Roster in enrollment order
        """
        data = await self._request(
            "GET",
            f"/batches/{group_id}",
            params={"populate": "enrolledStudents"},
        )
        rows = (data or {}).get("enrolledStudents", []) if isinstance(data, dict) else []
        students = self._parse(_enrolled_students, rows, "roster")
        seen = set()
        members = []
        for student in students:
            if student.id in seen:
                continue
            seen.add(student.id)
            members.append(
                RosterMember(student_id=student.id, name=student.name, email=student.email)
            )
        return Roster(group_id=group_id, members=tuple(members))

    # =========================================================================
    # Attendance for one date
    # =========================================================================

    async def get_confirmed_attendance(
        self, group_id: str, attendance_date: date
    ) -> List[ConfirmedRecord]:
        """
        Fetch saved attendance for a batch on a date.

        The endpoint pads its answer with unsaved "absent" rows for every
        enrolled student; those carry no record id and are filtered out here so
        that only confirmed records remain. A 404 means nothing is saved.
        """
        data = await self._request(
            "GET",
            f"/attendance/{group_id}/{attendance_date.isoformat()}",
            allow_not_found=True,
        )
        rows = self._parse(_confirmed_rows, data, "attendance")
        return [row for row in rows if row.persisted_id]

    async def upsert_batch_attendance(
        self,
        group_id: str,
        attendance_date: date,
        records: Sequence[AttendanceSubmitRecord],
    ) -> None:
        """Replace every student's record for ``attendance_date`` in one request."""
        body = BatchSubmitRequest(date=attendance_date, records=list(records))
        await self._request(
            "POST",
            f"/attendance/batch/{group_id}",
            json_data=body.model_dump(mode="json", by_alias=True),
        )

    async def update_attendance_record(
        self, persisted_id: str, update: RecordUpdate
    ) -> None:
        await self._request(
            "PATCH",
            f"/attendance/{persisted_id}",
            json_data=update.model_dump(mode="json"),
        )

    # =========================================================================
    # History
    # =========================================================================

    async def get_student_attendance_history(
        self, student_id: str, group_id: str
    ) -> List[StudentHistoryRecord]:
        data = await self._request(
            "GET", f"/attendance/student/{student_id}/{group_id}"
        )
        rows = data.get("records", []) if isinstance(data, dict) else data
        return self._parse(_student_history, rows, "student history")

    async def get_batch_attendance_history(
        self, group_id: str, start: date, end: date
    ) -> List[BatchHistoryDay]:
        data = await self._request(
            "GET",
            f"/attendance/batch/{group_id}/history",
            params={"startDate": start.isoformat(), "endDate": end.isoformat()},
        )
        return self._parse(_batch_history, data, "batch history")
