"""Unit tests for merging confirmed snapshots into drafts."""

import random

import pytest
from services.attendance_service.models import (
    AttendanceStatus,
    EmptySnapshotPolicy,
)
from services.attendance_service.reconciliation import reconcile
from services.attendance_service.transitions import bulk_assign, toggle_cycle
from tests.factories import ConfirmedRecordFactory, DraftFactory, RosterFactory

RESET = EmptySnapshotPolicy.RESET_ALL
PRESERVE = EmptySnapshotPolicy.PRESERVE_TOUCHED


@pytest.mark.unit
def test_confirmed_values_replace_local_entries():
    draft = DraftFactory.create()
    snapshot = [
        ConfirmedRecordFactory.create("s1", persisted_id="r1", status="late", remarks="traffic"),
    ]

    result = reconcile(draft, snapshot, RESET)
    entry = result.draft.get("s1")

    assert entry.status == AttendanceStatus.LATE
    assert entry.remarks == "traffic"
    assert entry.persisted_id == "r1"
    assert not entry.is_virtual


@pytest.mark.unit
def test_missing_students_keep_their_entries():
    draft = DraftFactory.create()
    snapshot = [ConfirmedRecordFactory.create("s1", status="present")]

    result = reconcile(draft, snapshot, RESET).draft

    assert result.get("s2").status == AttendanceStatus.ABSENT
    assert result.get("s2").is_virtual
    assert result.get("s3").is_virtual


@pytest.mark.unit
def test_server_truth_wins_over_unsynced_edit():
    draft = DraftFactory.create(statuses={"s1": "excused"})
    snapshot = [ConfirmedRecordFactory.create("s1", status="absent")]

    result = reconcile(draft, snapshot, RESET)

    assert result.draft.get("s1").status == AttendanceStatus.ABSENT
    assert result.overwritten == ("s1",)


@pytest.mark.unit
def test_matching_edit_is_not_reported_as_overwritten():
    draft = DraftFactory.create(statuses={"s1": "present"})
    snapshot = [ConfirmedRecordFactory.create("s1", status="present")]

    assert reconcile(draft, snapshot, RESET).overwritten == ()


@pytest.mark.unit
def test_records_outside_roster_are_dropped():
    draft = DraftFactory.create()
    snapshot = [
        ConfirmedRecordFactory.create("s1"),
        ConfirmedRecordFactory.create("former-student"),
    ]

    result = reconcile(draft, snapshot, RESET)

    assert result.draft.student_ids == ("s1", "s2", "s3")
    assert result.dropped == ("former-student",)


@pytest.mark.unit
def test_reconcile_clears_touched_and_marks_reconciled():
    draft = DraftFactory.create(statuses={"s2": "late"})
    result = reconcile(draft, [ConfirmedRecordFactory.create("s1")], RESET).draft

    assert result.touched == frozenset()
    assert result.reconciled is True


# ---------------------------------------------------------------------------
# Empty snapshot
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_empty_snapshot_resets_local_edits():
    """Edits {present, late, excused} against an empty snapshot become all absent."""
    draft = DraftFactory.create(
        statuses={"s1": "present", "s2": "late", "s3": "excused"}
    )

    result = reconcile(draft, [], RESET)

    assert result.draft.status_map() == {
        "s1": AttendanceStatus.ABSENT,
        "s2": AttendanceStatus.ABSENT,
        "s3": AttendanceStatus.ABSENT,
    }
    assert all(entry.is_virtual and entry.remarks == "" for entry in result.draft)
    assert set(result.discarded) == {"s1", "s2", "s3"}


@pytest.mark.unit
def test_empty_snapshot_clears_persisted_ids():
    draft = reconcile(
        DraftFactory.create(),
        [ConfirmedRecordFactory.create("s1", persisted_id="r1")],
        RESET,
    ).draft

    result = reconcile(draft, [], RESET).draft

    assert result.get("s1").persisted_id is None
    assert result.get("s1").status == AttendanceStatus.ABSENT


@pytest.mark.unit
def test_empty_snapshot_can_preserve_touched_entries():
    draft = DraftFactory.create(statuses={"s1": "present"})

    result = reconcile(draft, [], PRESERVE).draft

    assert result.get("s1").status == AttendanceStatus.PRESENT
    assert result.get("s1").is_virtual
    assert result.get("s2").status == AttendanceStatus.ABSENT


@pytest.mark.unit
def test_default_policy_comes_from_settings(settings_env):
    settings_env(EMPTY_SNAPSHOT_POLICY="preserve_touched")
    draft = DraftFactory.create(statuses={"s3": "late"})

    result = reconcile(draft, []).draft

    assert result.get("s3").status == AttendanceStatus.LATE


# ---------------------------------------------------------------------------
# Roster completeness
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize("seed", range(20))
def test_key_set_survives_any_operation_sequence(seed):
    rng = random.Random(seed)
    roster = RosterFactory.create(size=rng.randint(1, 6))
    ids = list(roster.student_ids)
    draft = DraftFactory.create(roster=roster)

    for _ in range(25):
        op = rng.choice(["toggle", "bulk", "reconcile", "empty"])
        if op == "toggle":
            draft = toggle_cycle(draft, rng.choice(ids))
        elif op == "bulk":
            subset = rng.sample(ids, rng.randint(0, len(ids)))
            draft = bulk_assign(draft, subset, rng.choice(list(AttendanceStatus)))
        elif op == "reconcile":
            picked = rng.sample(ids + ["outsider"], rng.randint(1, len(ids) + 1))
            snapshot = [
                ConfirmedRecordFactory.create(sid, status=rng.choice(list(AttendanceStatus)))
                for sid in picked
            ]
            draft = reconcile(draft, snapshot, rng.choice([RESET, PRESERVE])).draft
        else:
            draft = reconcile(draft, [], rng.choice([RESET, PRESERVE])).draft

        assert draft.student_ids == roster.student_ids
