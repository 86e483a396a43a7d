"""
Factories for building valid attendance desk test data.

Every factory returns a ready-to-use value. Override any field via kwargs.

Usage:
    roster = RosterFactory.create(size=3)
    record = ConfirmedRecordFactory.create(student_id="s1", status="present")
"""

import uuid
from dataclasses import replace
from datetime import date

from services.attendance_service.models import (
    VIRTUAL,
    AttendanceEntry,
    AttendanceStatus,
    Draft,
    DraftKey,
    Persisted,
    Roster,
    RosterMember,
)
from services.attendance_service.schemas import ConfirmedRecord

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

TODAY = date(2024, 3, 15)


def _record_id() -> str:
    return uuid.uuid4().hex[:24]


# ---------------------------------------------------------------------------
# Roster
# ---------------------------------------------------------------------------


class RosterFactory:
    @staticmethod
    def create(group_id="batch-1", size=3, student_ids=None, **overrides):
        if student_ids is None:
            student_ids = [f"s{i}" for i in range(1, size + 1)]
        members = tuple(
            RosterMember(
                student_id=sid,
                name=f"Student {sid.upper()}",
                email=f"{sid}@example.com",
            )
            for sid in student_ids
        )
        defaults = {"group_id": group_id, "members": members}
        defaults.update(overrides)
        return Roster(**defaults)


# ---------------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------------


class DraftFactory:
    @staticmethod
    def create(roster=None, attendance_date=TODAY, statuses=None, **overrides):
        """Build a draft, optionally with per-student statuses.

        ``statuses`` maps student IDs to a status or status string; listed
        students are also marked as touched.
        """
        roster = roster if roster is not None else RosterFactory.create()
        draft = Draft.for_roster(DraftKey(roster.group_id, attendance_date), roster)
        if statuses:
            draft = draft.with_entries(
                {
                    sid: AttendanceEntry(sid, status=AttendanceStatus(status))
                    for sid, status in statuses.items()
                },
                touched=statuses.keys(),
            )
        if overrides:
            draft = replace(draft, **overrides)
        return draft


class EntryFactory:
    @staticmethod
    def create(student_id="s1", persisted_id=None, **overrides):
        defaults = {
            "student_id": student_id,
            "status": AttendanceStatus.ABSENT,
            "remarks": "",
            "persistence": Persisted(persisted_id) if persisted_id else VIRTUAL,
        }
        defaults.update(overrides)
        return AttendanceEntry(**defaults)


# ---------------------------------------------------------------------------
# Confirmed records
# ---------------------------------------------------------------------------


class ConfirmedRecordFactory:
    @staticmethod
    def create(student_id="s1", **overrides):
        defaults = {
            "persisted_id": _record_id(),
            "student_id": student_id,
            "status": AttendanceStatus.PRESENT,
            "remarks": "",
        }
        defaults.update(overrides)
        return ConfirmedRecord(**defaults)

    @staticmethod
    def batch(statuses, **overrides):
        """One persisted record per ``{student_id: status}`` pair."""
        return [
            ConfirmedRecordFactory.create(student_id=sid, status=status, **overrides)
            for sid, status in statuses.items()
        ]
