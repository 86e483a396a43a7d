from datetime import date
from typing import Iterable

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from services.attendance_service.date_window import max_date, min_date
from services.attendance_service.desk import AttendanceDesk
from services.attendance_service.schemas import (
    BatchHistoryResponse,
    BulkAssignRequest,
    DateWindowResponse,
    DeskResponse,
    EditEntryRequest,
    EntryResponse,
    MarkAllRequest,
    SelectRequest,
    StudentHistoryResponse,
)

router = APIRouter(tags=["attendance"])


def get_desk(request: Request) -> AttendanceDesk:
    return request.app.state.desk


def require_on_roster(desk: AttendanceDesk, student_ids: Iterable[str]) -> None:
    draft = desk.draft
    if draft is None:
        return
    unknown = sorted(set(student_ids).difference(draft.student_ids))
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Not on the roster: {', '.join(unknown)}",
        )


def render_desk(desk: AttendanceDesk) -> DeskResponse:
    draft = desk.draft
    roster = desk.roster
    entries = []
    if draft is not None:
        for entry in draft.entries:
            member = roster.member(entry.student_id) if roster else None
            entries.append(
                EntryResponse(
                    student_id=entry.student_id,
                    name=member.name if member else "",
                    email=member.email if member else "",
                    status=entry.status,
                    status_label=entry.status.label,
                    status_color=entry.status.color,
                    remarks=entry.remarks,
                    persisted_id=entry.persisted_id,
                    is_virtual=entry.is_virtual,
                )
            )
    selection = desk.selection
    return DeskResponse(
        state=desk.state,
        group_id=selection.group_id if selection else None,
        selected_date=selection.date if selection else None,
        entries=entries,
        touched=sorted(draft.touched) if draft is not None else [],
        error=desk.error.message if desk.error else None,
        conflict=desk.conflict.message if desk.conflict else None,
    )


@router.get("/desk", response_model=DeskResponse)
async def get_desk_state(desk: AttendanceDesk = Depends(get_desk)):
    """Current draft and load state, for rendering."""
    return render_desk(desk)


@router.get("/desk/window", response_model=DateWindowResponse)
async def get_date_window(desk: AttendanceDesk = Depends(get_desk)):
    now = desk.now()
    return DateWindowResponse(
        min_date=min_date(now), max_date=max_date(now), today=max_date(now)
    )


@router.post("/desk/select", response_model=DeskResponse)
async def select_batch_date(
    selection: SelectRequest, desk: AttendanceDesk = Depends(get_desk)
):
    await desk.select(selection.group_id, selection.date)
    return render_desk(desk)


@router.post("/desk/retry", response_model=DeskResponse)
async def retry_load(desk: AttendanceDesk = Depends(get_desk)):
    await desk.retry()
    return render_desk(desk)


@router.post("/desk/entries/{student_id}/toggle", response_model=DeskResponse)
async def toggle_entry(student_id: str, desk: AttendanceDesk = Depends(get_desk)):
    require_on_roster(desk, [student_id])
    desk.toggle_cycle(student_id)
    return render_desk(desk)


@router.patch("/desk/entries/{student_id}", response_model=DeskResponse)
async def edit_entry(
    student_id: str,
    edit: EditEntryRequest,
    desk: AttendanceDesk = Depends(get_desk),
):
    require_on_roster(desk, [student_id])
    await desk.edit_one(student_id, edit.status, edit.remarks)
    return render_desk(desk)


@router.post("/desk/bulk", response_model=DeskResponse)
async def bulk_assign(
    bulk: BulkAssignRequest, desk: AttendanceDesk = Depends(get_desk)
):
    require_on_roster(desk, bulk.student_ids)
    desk.bulk_assign(bulk.student_ids, bulk.status)
    return render_desk(desk)


@router.post("/desk/mark-all", response_model=DeskResponse)
async def mark_all(body: MarkAllRequest, desk: AttendanceDesk = Depends(get_desk)):
    desk.mark_all(body.status)
    return render_desk(desk)


@router.post("/desk/submit", response_model=DeskResponse)
async def submit_attendance(desk: AttendanceDesk = Depends(get_desk)):
    """
    Save the whole draft for the selected batch and date, then reload it.
    """
    await desk.submit_batch()
    return render_desk(desk)


@router.get("/students/{student_id}/history", response_model=StudentHistoryResponse)
async def get_student_history(
    student_id: str,
    group_id: str = Query(...),
    desk: AttendanceDesk = Depends(get_desk),
):
    return await desk.student_history(student_id, group_id)


@router.get("/batches/{group_id}/history", response_model=BatchHistoryResponse)
async def get_batch_history(
    group_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    desk: AttendanceDesk = Depends(get_desk),
):
    """
    Saved attendance per date for a batch, with a status tally for each day.
    """
    return await desk.batch_history(group_id, start_date, end_date)
