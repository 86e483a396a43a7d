"""Operator-driven status changes on a draft.

Every function takes a draft and returns a new one; the input is never mutated
and the roster key-set is preserved. Referencing a student outside the roster
raises ``RosterIntegrityError``.
"""

from dataclasses import replace
from typing import Iterable, Optional, Union

from services.attendance_service.exceptions import ValidationError
from services.attendance_service.models import AttendanceStatus, Draft

StatusLike = Union[AttendanceStatus, str]


def coerce_status(value: StatusLike) -> AttendanceStatus:
    """Accept a status enum or its wire value; reject anything else."""
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        raise ValidationError(
            f"Invalid status value {value!r}; expected one of: {allowed}"
        ) from None


def toggle_cycle(draft: Draft, student_id: str) -> Draft:
    """Advance one entry along absent -> present -> late -> excused -> cancelled."""
    entry = draft.get(student_id)
    updated = replace(entry, status=entry.status.next_in_cycle())
    return draft.with_entries({student_id: updated}, touched=[student_id])


def bulk_assign(draft: Draft, student_ids: Iterable[str], status: StatusLike) -> Draft:
    """Set ``status`` on the selected students; remarks are left alone."""
    new_status = coerce_status(status)
    selected = draft.require(student_ids)
    updates = {
        sid: replace(draft.get(sid), status=new_status)
        for sid in draft.student_ids
        if sid in selected
    }
    return draft.with_entries(updates, touched=selected)


def mark_all(draft: Draft, status: StatusLike) -> Draft:
    """``bulk_assign`` over the whole roster ("all present", "class cancelled")."""
    return bulk_assign(draft, draft.student_ids, status)


def edit_one(
    draft: Draft,
    student_id: str,
    status: StatusLike,
    remarks: Optional[str] = None,
) -> Draft:
    """Local half of the single-record edit: set status and remarks for one entry.

    Pushing the change to the backing store for persisted entries is the
    session's job (see ``AttendanceDesk.edit_one``).
    """
    new_status = coerce_status(status)
    entry = draft.get(student_id)
    updated = replace(
        entry,
        status=new_status,
        remarks=entry.remarks if remarks is None else remarks,
    )
    return draft.with_entries({student_id: updated}, touched=[student_id])
