"""Merge a confirmed snapshot from the backing store into the live draft.

Confirmed values always replace local ones ("server truth on load"). This is
not a three-way merge: operator edits that disagree with the snapshot are lost,
and reported back in ``ReconcileResult.overwritten`` so they can be surfaced.

An empty snapshot means nothing has been saved for the date yet. Under
``EmptySnapshotPolicy.RESET_ALL`` every entry is reset to absent/virtual, which
also discards edits made while the fetch was in flight. ``PRESERVE_TOUCHED``
keeps those edits instead.
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional, Sequence, Tuple

from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.attendance_service.models import (
    VIRTUAL,
    AttendanceEntry,
    Draft,
    EmptySnapshotPolicy,
    Persisted,
)
from services.attendance_service.schemas import ConfirmedRecord

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    draft: Draft
    # Touched entries whose local value lost to a differing confirmed value
    overwritten: Tuple[str, ...] = ()
    # Touched entries wiped by an empty-snapshot reset
    discarded: Tuple[str, ...] = ()
    # Confirmed records for students outside the roster
    dropped: Tuple[str, ...] = ()


def default_policy() -> EmptySnapshotPolicy:
    return EmptySnapshotPolicy(get_settings().EMPTY_SNAPSHOT_POLICY)


def entry_from_record(record: ConfirmedRecord) -> AttendanceEntry:
    persistence = Persisted(record.persisted_id) if record.persisted_id else VIRTUAL
    return AttendanceEntry(
        student_id=record.student_id,
        status=record.status,
        remarks=record.remarks,
        persistence=persistence,
    )


def _same_values(a: AttendanceEntry, b: AttendanceEntry) -> bool:
    return a.status == b.status and a.remarks.strip() == b.remarks.strip()


def _reset(draft: Draft, policy: EmptySnapshotPolicy) -> ReconcileResult:
    updates: Dict[str, AttendanceEntry] = {}
    discarded = []
    for entry in draft.entries:
        blank = AttendanceEntry.default(entry.student_id)
        if entry.student_id in draft.touched:
            if policy is EmptySnapshotPolicy.PRESERVE_TOUCHED:
                # Keep the operator's values; nothing on the server backs them.
                updates[entry.student_id] = replace(entry, persistence=VIRTUAL)
                continue
            if not _same_values(entry, blank):
                discarded.append(entry.student_id)
        updates[entry.student_id] = blank

    if discarded:
        logger.warning(
            "Empty snapshot for %s discarded %d unsaved edit(s)",
            draft.key,
            len(discarded),
        )
    merged = replace(draft.with_entries(updates), touched=frozenset(), reconciled=True)
    return ReconcileResult(draft=merged, discarded=tuple(discarded))


def reconcile(
    draft: Draft,
    snapshot: Sequence[ConfirmedRecord],
    policy: Optional[EmptySnapshotPolicy] = None,
) -> ReconcileResult:
    """Return ``draft`` with ``snapshot`` merged in.

    The result always has exactly the draft's key-set; the touched set is
    cleared and the draft is marked reconciled.
    """
    policy = policy or default_policy()

    if not snapshot:
        return _reset(draft, policy)

    confirmed: Dict[str, ConfirmedRecord] = {}
    dropped = []
    for record in snapshot:
        if record.student_id not in draft:
            dropped.append(record.student_id)
            continue
        if record.student_id in confirmed:
            logger.warning(
                "Duplicate confirmed record for %s in %s; keeping the last one",
                record.student_id,
                draft.key,
            )
        confirmed[record.student_id] = record

    updates: Dict[str, AttendanceEntry] = {}
    overwritten = []
    for student_id, record in confirmed.items():
        incoming = entry_from_record(record)
        local = draft.get(student_id)
        if student_id in draft.touched and not _same_values(local, incoming):
            overwritten.append(student_id)
        updates[student_id] = incoming

    if dropped:
        logger.info(
            "Dropped %d confirmed record(s) outside the roster of %s",
            len(dropped),
            draft.key,
        )

    merged = replace(draft.with_entries(updates), touched=frozenset(), reconciled=True)
    return ReconcileResult(
        draft=merged,
        overwritten=tuple(overwritten),
        dropped=tuple(dropped),
    )
