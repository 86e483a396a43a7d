"""Write paths from the draft to the backing store.

``submit_batch`` always sends every roster entry for the date (full replace),
never a partial patch. It serializes the draft it is given at call time, so a
retry after a failure must be made with the then-current draft rather than a
cached payload.
"""

from datetime import date, datetime
from typing import List, Optional, Union

from libs.common.logging import get_logger
from services.attendance_service.backend import AttendanceBackend
from services.attendance_service.date_window import ensure_editable
from services.attendance_service.exceptions import ValidationError
from services.attendance_service.models import AttendanceStatus, Draft
from services.attendance_service.schemas import AttendanceSubmitRecord, RecordUpdate
from services.attendance_service.transitions import StatusLike, coerce_status

logger = get_logger(__name__)


def serialize_draft(draft: Draft) -> List[AttendanceSubmitRecord]:
    """Map every entry to ``{studentId, status, remarks}``; record ids are dropped."""
    return [
        AttendanceSubmitRecord(
            student_id=entry.student_id,
            status=entry.status,
            remarks=entry.remarks.strip(),
        )
        for entry in draft.entries
    ]


def validate_submission(
    draft: Optional[Draft], now: Optional[Union[date, datetime]] = None
) -> Draft:
    if draft is None or draft.is_empty():
        raise ValidationError("No roster loaded; nothing to submit")
    ensure_editable(draft.key.date, now)
    return draft


async def submit_batch(
    backend: AttendanceBackend,
    draft: Optional[Draft],
    now: Optional[Union[date, datetime]] = None,
) -> List[AttendanceSubmitRecord]:
    """Upsert the whole draft for its (group, date).

    Raises ``ValidationError`` before any network call if the draft is empty or
    its date is outside the editable window. Transport failures propagate as
    ``TransportError``; the draft itself is never touched here.

    Returns:
        The records that were sent.
    """
    draft = validate_submission(draft, now)
    records = serialize_draft(draft)
    logger.info("Submitting %d attendance record(s) for %s", len(records), draft.key)
    await backend.upsert_batch_attendance(draft.key.group_id, draft.key.date, records)
    return records


async def update_one(
    backend: AttendanceBackend,
    persisted_id: str,
    status: StatusLike,
    remarks: Optional[str] = "",
) -> RecordUpdate:
    """Write one already-persisted record directly, bypassing the batch upsert."""
    if not persisted_id:
        raise ValidationError("Only persisted records can be updated directly")
    new_status: AttendanceStatus = coerce_status(status)
    update = RecordUpdate(status=new_status, remarks=(remarks or "").strip())
    logger.info("Updating attendance record %s -> %s", persisted_id, new_status.value)
    await backend.update_attendance_record(persisted_id, update)
    return update
