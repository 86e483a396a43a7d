"""One operator's attendance session.

``AttendanceDesk`` owns the draft store and the load controller for a single
operator and is the only writer to either. Every fetch is tagged with the
selection token current when it started; when it resolves, the result is
applied only if that token is still current (last selection wins, not last
response wins).
"""

from datetime import date, datetime
from typing import Callable, Optional, Union

from libs.common.config import get_settings
from libs.common.datetime_utils import local_now
from libs.common.logging import get_logger
from services.attendance_service import transitions
from services.attendance_service.backend import AttendanceBackend
from services.attendance_service.controller import LoadController, LoadEvent
from services.attendance_service.date_window import ensure_editable
from services.attendance_service.draft_store import DraftStore
from services.attendance_service.exceptions import (
    AttendanceError,
    ConflictError,
    TransportError,
    ValidationError,
)
from services.attendance_service.history import (
    sort_newest_first,
    summarize_batch_history,
    summarize_student_history,
)
from services.attendance_service.models import (
    AttendanceStatus,
    Draft,
    DraftKey,
    EmptySnapshotPolicy,
    LoadState,
    Roster,
)
from services.attendance_service.reconciliation import (
    ReconcileResult,
    default_policy,
    reconcile,
)
from services.attendance_service.schemas import (
    BatchHistoryResponse,
    StudentHistoryResponse,
)
from services.attendance_service.submission import (
    submit_batch,
    update_one,
    validate_submission,
)
from services.attendance_service.transitions import StatusLike

logger = get_logger(__name__)

Clock = Callable[[], Union[date, datetime]]


class AttendanceDesk:
    def __init__(
        self,
        backend: AttendanceBackend,
        *,
        policy: Optional[EmptySnapshotPolicy] = None,
        refetch_after_update: Optional[bool] = None,
        clock: Optional[Clock] = None,
    ):
        settings = get_settings()
        self.backend = backend
        self.store = DraftStore()
        self.controller = LoadController()
        self.policy = policy or default_policy()
        self.refetch_after_update = (
            settings.REFETCH_AFTER_UPDATE
            if refetch_after_update is None
            else refetch_after_update
        )
        self._clock: Clock = clock or local_now
        self._token = 0
        self._selection: Optional[DraftKey] = None
        self._refetch_pending = False
        self.error: Optional[AttendanceError] = None
        self.conflict: Optional[ConflictError] = None
        self.last_result: Optional[ReconcileResult] = None

    # === read side ===

    @property
    def state(self) -> LoadState:
        return self.controller.state

    @property
    def selection(self) -> Optional[DraftKey]:
        return self._selection

    @property
    def draft(self) -> Optional[Draft]:
        if self._selection is None or not self.store.is_live(self._selection):
            return None
        return self.store.current

    @property
    def roster(self) -> Optional[Roster]:
        return self.store.roster if self.draft is not None else None

    def now(self) -> Union[date, datetime]:
        return self._clock()

    def _is_current(self, token: int) -> bool:
        return token == self._token

    def _live_draft(self) -> Draft:
        draft = self.draft
        if draft is None:
            raise ValidationError("No roster loaded for the current selection")
        return draft

    # === loading ===

    async def select(self, group_id: str, attendance_date: date) -> Optional[Draft]:
        """Make (group, date) the live selection and load it.

        The previous draft is discarded immediately. Returns the reconciled
        draft, or None if another selection superseded this one meanwhile.
        """
        if not group_id:
            raise ValidationError("A batch must be selected")
        key = DraftKey(group_id, ensure_editable(attendance_date, self.now()))
        return await self._load(key, LoadEvent.SELECT)

    async def retry(self) -> Optional[Draft]:
        """Reload the current selection after a failed fetch."""
        if self._selection is None:
            raise ValidationError("Nothing selected to retry")
        ensure_editable(self._selection.date, self.now())
        return await self._load(self._selection, LoadEvent.RETRY)

    async def refresh(self) -> Optional[Draft]:
        """Re-fetch and reconcile the confirmed snapshot for the live draft."""
        self._live_draft()
        self.controller.transition(LoadEvent.REFRESH)
        return await self._load_snapshot(self._token)

    async def _load(self, key: DraftKey, event: LoadEvent) -> Optional[Draft]:
        self.controller.transition(event)
        self._token += 1
        token = self._token
        self._selection = key
        self.store.discard()
        self.error = None
        self.conflict = None
        self.last_result = None
        self._refetch_pending = False
        logger.info("Loading attendance for %s", key, extra={"draft_key": key})

        try:
            roster = await self.backend.get_roster(key.group_id)
        except TransportError as exc:
            if not self._is_current(token):
                logger.info("Ignoring failure of superseded fetch: %s", exc.message)
                return None
            self._fetch_failed(exc)
            raise

        if not self._is_current(token):
            logger.info("Discarding stale roster for %s", key)
            return None

        self.store.open(key, roster)
        self.controller.transition(LoadEvent.ROSTER_LOADED)
        return await self._load_snapshot(token)

    async def _load_snapshot(self, token: int) -> Optional[Draft]:
        draft = await self._reconcile_snapshot(token)
        # A write-through edit landed while this snapshot was in flight, so it
        # may predate that write.
        while draft is not None and self._refetch_pending and self._is_current(token):
            self._refetch_pending = False
            logger.debug(
                "Re-fetching %s for an edit written during the load", self._selection
            )
            self.controller.transition(LoadEvent.REFRESH)
            draft = await self._reconcile_snapshot(token)
        return draft

    async def _reconcile_snapshot(self, token: int) -> Optional[Draft]:
        key = self._selection
        try:
            snapshot = await self.backend.get_confirmed_attendance(
                key.group_id, key.date
            )
        except TransportError as exc:
            if not self._is_current(token):
                logger.info("Ignoring failure of superseded fetch: %s", exc.message)
                return None
            self._fetch_failed(exc)
            raise

        if not self._is_current(token):
            logger.info("Discarding stale attendance snapshot for %s", key)
            return None

        # Reconcile against the draft as it is now, including edits made
        # while the fetch was in flight.
        result = reconcile(self.store.current, snapshot, self.policy)
        self.store.replace(result.draft)
        self.last_result = result
        if result.overwritten:
            logger.warning(
                "Confirmed attendance for %s replaced %d local edit(s)",
                key,
                len(result.overwritten),
            )
        self.controller.transition(LoadEvent.SNAPSHOT_LOADED)
        return result.draft

    def _fetch_failed(self, exc: TransportError) -> None:
        logger.error(
            "Attendance load failed for %s: %s",
            self._selection,
            exc.message,
            extra={"draft_key": self._selection, "status_code": exc.status_code},
        )
        self.error = exc
        self.controller.transition(LoadEvent.FETCH_FAILED)

    # === operator actions ===

    def toggle_cycle(self, student_id: str) -> Draft:
        return self.store.replace(transitions.toggle_cycle(self._live_draft(), student_id))

    def bulk_assign(self, student_ids, status: StatusLike) -> Draft:
        return self.store.replace(
            transitions.bulk_assign(self._live_draft(), student_ids, status)
        )

    def mark_all(self, status: StatusLike) -> Draft:
        return self.store.replace(transitions.mark_all(self._live_draft(), status))

    def mark_all_present(self) -> Draft:
        return self.mark_all(AttendanceStatus.PRESENT)

    def cancel_class(self) -> Draft:
        """Record that no session took place: every entry becomes cancelled."""
        return self.mark_all(AttendanceStatus.CANCELLED)

    async def edit_one(
        self, student_id: str, status: StatusLike, remarks: Optional[str] = None
    ) -> Draft:
        """Single-record edit.

        The local draft is always updated. Persisted entries are also written
        straight to the backing store and, unless disabled, the snapshot is
        re-fetched so draft and store cannot drift apart.
        """
        draft = self._live_draft()
        entry = draft.get(student_id)
        updated = self.store.replace(
            transitions.edit_one(draft, student_id, status, remarks)
        )
        if entry.is_virtual:
            return updated

        token = self._token
        new_entry = updated.get(student_id)
        try:
            await update_one(
                self.backend, entry.persisted_id, new_entry.status, new_entry.remarks
            )
        except TransportError as exc:
            if self._is_current(token):
                self.error = exc
            raise

        if not (self.refetch_after_update and self._is_current(token)):
            return self.draft or updated
        if self.controller.can(LoadEvent.REFRESH):
            self.controller.transition(LoadEvent.REFRESH)
            await self._load_snapshot(token)
        elif self.state in (LoadState.SNAPSHOT_LOADING, LoadState.SUBMITTING):
            # The running load re-fetches once it has reconciled.
            self._refetch_pending = True
        return self.draft or updated

    # === submission ===

    async def submit_batch(self) -> Optional[Draft]:
        """Upsert the whole live draft, then reload the confirmed snapshot.

        Validation happens before any network call. On transport failure the
        draft is left exactly as it was and the desk returns to ready, so the
        operator can retry; a retry re-serializes the then-current draft.
        """
        draft = validate_submission(self.draft, self.now())
        self.controller.transition(LoadEvent.SUBMIT)
        token = self._token
        self.error = None
        self.conflict = None

        try:
            sent = await submit_batch(self.backend, draft, self.now())
        except TransportError as exc:
            if self._is_current(token):
                self.error = exc
                self.controller.transition(LoadEvent.SUBMIT_FAILED)
            raise
        except ValidationError:
            self.controller.transition(LoadEvent.SUBMIT_FAILED)
            raise

        if not self._is_current(token):
            logger.info("Submission for %s finished after selection changed", draft.key)
            return None

        self.controller.transition(LoadEvent.SUBMIT_SUCCEEDED)
        refreshed = await self._load_snapshot(token)
        if refreshed is not None:
            self._check_conflicts(refreshed, sent)
        return refreshed

    def _check_conflicts(self, refreshed: Draft, sent) -> None:
        differing = [
            record.student_id
            for record in sent
            if refreshed.get(record.student_id).status != record.status
            or refreshed.get(record.student_id).remarks.strip() != record.remarks
        ]
        if differing:
            self.conflict = ConflictError(
                f"{len(differing)} record(s) for {refreshed.key} were changed elsewhere",
                student_ids=differing,
            )
            logger.warning(
                "%s",
                self.conflict.message,
                extra={"draft_key": refreshed.key, "student_ids": differing},
            )

    # === history ===

    async def student_history(
        self, student_id: str, group_id: str
    ) -> StudentHistoryResponse:
        records = await self.backend.get_student_attendance_history(student_id, group_id)
        records = sort_newest_first(records)
        return StudentHistoryResponse(
            student_id=student_id,
            group_id=group_id,
            records=records,
            statistics=summarize_student_history(records),
        )

    async def batch_history(
        self, group_id: str, start: date, end: date
    ) -> BatchHistoryResponse:
        if start > end:
            raise ValidationError("History start date must not be after its end date")
        days = await self.backend.get_batch_attendance_history(group_id, start, end)
        return BatchHistoryResponse(
            group_id=group_id,
            start_date=start,
            end_date=end,
            days=summarize_batch_history(days),
        )
