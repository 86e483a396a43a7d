"""Value objects for one operator's attendance draft.

All types here are immutable. Operations that "change" a draft build and return
a new one, so a draft handed to a renderer or a serializer never moves under it.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Tuple, Union

from services.attendance_service.exceptions import RosterIntegrityError
from services.attendance_service.models.enums import AttendanceStatus


@dataclass(frozen=True)
class Virtual:
    """Entry that has never been written to the backing store."""

    @property
    def record_id(self) -> None:
        return None


@dataclass(frozen=True)
class Persisted:
    """Entry backed by a confirmed server record."""

    record_id: str


Persistence = Union[Virtual, Persisted]

VIRTUAL = Virtual()


@dataclass(frozen=True)
class RosterMember:
    student_id: str
    name: str = ""
    email: str = ""


@dataclass(frozen=True)
class Roster:
    """Students enrolled in a group when the draft was created."""

    group_id: str
    members: Tuple[RosterMember, ...] = ()

    @property
    def student_ids(self) -> Tuple[str, ...]:
        return tuple(member.student_id for member in self.members)

    def __contains__(self, student_id: object) -> bool:
        return student_id in self.student_ids

    def __len__(self) -> int:
        return len(self.members)

    def member(self, student_id: str) -> Optional[RosterMember]:
        for member in self.members:
            if member.student_id == student_id:
                return member
        return None


@dataclass(frozen=True)
class DraftKey:
    group_id: str
    date: date

    def __str__(self) -> str:
        return f"{self.group_id}@{self.date.isoformat()}"


@dataclass(frozen=True)
class AttendanceEntry:
    student_id: str
    status: AttendanceStatus = AttendanceStatus.ABSENT
    remarks: str = ""
    persistence: Persistence = VIRTUAL

    @property
    def persisted_id(self) -> Optional[str]:
        return self.persistence.record_id

    @property
    def is_virtual(self) -> bool:
        return isinstance(self.persistence, Virtual)

    @classmethod
    def default(cls, student_id: str) -> "AttendanceEntry":
        return cls(student_id=student_id)


@dataclass(frozen=True)
class Draft:
    """Attendance entries for one (group, date), in roster order.

    Attributes:
        key: The (group, date) pair this draft belongs to.
        entries: Exactly one entry per roster member.
        touched: Student IDs the operator edited since the last reconciliation.
        reconciled: Whether a confirmed snapshot has been merged at least once.
    """

    key: DraftKey
    entries: Tuple[AttendanceEntry, ...] = ()
    touched: FrozenSet[str] = field(default_factory=frozenset)
    reconciled: bool = False

    @classmethod
    def for_roster(cls, key: DraftKey, roster: Roster) -> "Draft":
        """Build the default draft: every roster member absent, virtual."""
        return cls(
            key=key,
            entries=tuple(AttendanceEntry.default(sid) for sid in roster.student_ids),
        )

    @property
    def student_ids(self) -> Tuple[str, ...]:
        return tuple(entry.student_id for entry in self.entries)

    def is_empty(self) -> bool:
        return not self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[AttendanceEntry]:
        return iter(self.entries)

    def __contains__(self, student_id: object) -> bool:
        return any(entry.student_id == student_id for entry in self.entries)

    def get(self, student_id: str) -> AttendanceEntry:
        for entry in self.entries:
            if entry.student_id == student_id:
                return entry
        raise RosterIntegrityError(
            f"Student {student_id!r} is not on the roster for {self.key}"
        )

    def require(self, student_ids: Iterable[str]) -> FrozenSet[str]:
        """Return ``student_ids`` as a set, failing on any ID outside the roster."""
        wanted = frozenset(student_ids)
        unknown = wanted.difference(self.student_ids)
        if unknown:
            raise RosterIntegrityError(
                f"Students {sorted(unknown)!r} are not on the roster for {self.key}"
            )
        return wanted

    def status_map(self) -> Dict[str, AttendanceStatus]:
        return {entry.student_id: entry.status for entry in self.entries}

    def with_entries(
        self,
        updates: Mapping[str, AttendanceEntry],
        *,
        touched: Iterable[str] = (),
    ) -> "Draft":
        """Return a copy with ``updates`` swapped in by student ID.

        The key-set never changes: every update must target a roster member.
        """
        self.require(updates)
        for student_id, entry in updates.items():
            if entry.student_id != student_id:
                raise RosterIntegrityError(
                    f"Entry for {entry.student_id!r} filed under {student_id!r}"
                )
        entries = tuple(updates.get(e.student_id, e) for e in self.entries)
        return replace(self, entries=entries, touched=self.touched | frozenset(touched))
