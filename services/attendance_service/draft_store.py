"""Holder for the single live attendance draft of an operator session.

The store owns at most one draft at a time. Opening a new (group, date)
discards whatever was live before; nothing is retained across selections.
"""

from typing import Optional

from libs.common.logging import get_logger
from services.attendance_service.exceptions import RosterIntegrityError
from services.attendance_service.models import Draft, DraftKey, Roster

logger = get_logger(__name__)


class DraftStore:
    def __init__(self):
        self._draft: Optional[Draft] = None
        self._roster: Optional[Roster] = None

    @property
    def current(self) -> Optional[Draft]:
        return self._draft

    @property
    def roster(self) -> Optional[Roster]:
        return self._roster

    @property
    def key(self) -> Optional[DraftKey]:
        return self._draft.key if self._draft is not None else None

    def is_live(self, key: DraftKey) -> bool:
        return self._draft is not None and self._draft.key == key

    def open(self, key: DraftKey, roster: Roster) -> Draft:
        """Replace any live draft with the default draft for ``roster``."""
        if self._draft is not None and self._draft.key != key:
            logger.debug("Discarding draft %s for %s", self._draft.key, key)
        self._roster = roster
        self._draft = Draft.for_roster(key, roster)
        return self._draft

    def replace(self, draft: Draft) -> Draft:
        """Install ``draft`` as the live draft.

        The draft must belong to the live key and carry exactly the roster's
        student IDs, in roster order.
        """
        if self._draft is None or self._roster is None:
            raise RosterIntegrityError("No draft is open")
        if draft.key != self._draft.key:
            raise RosterIntegrityError(
                f"Draft for {draft.key} cannot replace live draft {self._draft.key}"
            )
        if draft.student_ids != self._roster.student_ids:
            raise RosterIntegrityError(
                f"Draft key-set for {draft.key} does not match its roster"
            )
        self._draft = draft
        return draft

    def discard(self) -> None:
        self._draft = None
        self._roster = None
