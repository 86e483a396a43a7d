from datetime import timedelta

import pytest
from services.attendance_service.exceptions import TransportError, ValidationError
from services.attendance_service.models import AttendanceStatus
from services.attendance_service.submission import (
    serialize_draft,
    submit_batch,
    update_one,
)
from services.attendance_service.transitions import edit_one, mark_all
from tests.factories import TODAY, DraftFactory, EntryFactory, RosterFactory


@pytest.mark.unit
def test_serialize_draft_sends_every_entry_without_ids():
    draft = DraftFactory.create().with_entries(
        {"s2": EntryFactory.create("s2", persisted_id="r2", remarks="  sick  ")}
    )

    records = serialize_draft(draft)
    payload = [record.model_dump(mode="json", by_alias=True) for record in records]

    assert payload == [
        {"studentId": "s1", "status": "absent", "remarks": ""},
        {"studentId": "s2", "status": "absent", "remarks": "sick"},
        {"studentId": "s3", "status": "absent", "remarks": ""},
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_submit_batch_upserts_whole_draft(backend):
    draft = mark_all(DraftFactory.create(), AttendanceStatus.PRESENT)

    sent = await submit_batch(backend, draft, TODAY)

    assert len(sent) == 3
    stored = backend.stored("batch-1", TODAY)
    assert {sid: r.status for sid, r in stored.items()} == {
        "s1": AttendanceStatus.PRESENT,
        "s2": AttendanceStatus.PRESENT,
        "s3": AttendanceStatus.PRESENT,
    }


@pytest.mark.asyncio
@pytest.mark.unit
async def test_out_of_window_submit_never_reaches_backend(backend):
    draft = DraftFactory.create(attendance_date=TODAY - timedelta(days=4))

    with pytest.raises(ValidationError):
        await submit_batch(backend, draft, TODAY)

    assert backend.calls == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_empty_draft_is_rejected(backend):
    empty = DraftFactory.create(roster=RosterFactory.create(student_ids=[]))

    with pytest.raises(ValidationError):
        await submit_batch(backend, empty, TODAY)
    with pytest.raises(ValidationError):
        await submit_batch(backend, None, TODAY)

    assert backend.calls == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_transport_failure_propagates_and_leaves_draft_alone(backend):
    draft = edit_one(DraftFactory.create(), "s1", "late", "bus")
    backend.fail_next("upsert_batch_attendance")

    with pytest.raises(TransportError) as excinfo:
        await submit_batch(backend, draft, TODAY)

    assert excinfo.value.status_code == 503
    assert draft.get("s1").status == AttendanceStatus.LATE
    assert backend.stored("batch-1", TODAY) == {}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_one_writes_persisted_record(backend):
    backend.seed("batch-1", TODAY, s1="absent")
    persisted_id = backend.stored("batch-1", TODAY)["s1"].persisted_id

    update = await update_one(backend, persisted_id, "excused", " note ")

    assert update.status == AttendanceStatus.EXCUSED
    assert update.remarks == "note"
    stored = backend.stored("batch-1", TODAY)["s1"]
    assert stored.status == AttendanceStatus.EXCUSED
    assert stored.remarks == "note"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_one_requires_an_id(backend):
    with pytest.raises(ValidationError):
        await update_one(backend, None, AttendanceStatus.PRESENT)
    assert backend.calls == []
