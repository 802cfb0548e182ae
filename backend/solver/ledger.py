from __future__ import annotations

from collections.abc import Hashable


class LedgerConflictError(RuntimeError):
    """Raised when a resource is committed twice for the same (day, slot)."""


_Book = dict[Hashable, dict[str, set[int]]]


def _is_free(book: _Book, key: Hashable, day: str, slot: int) -> bool:
    return slot not in book.get(key, {}).get(day, ())


def _commit(book: _Book, key: Hashable, day: str, slot: int, what: str) -> None:
    slots = book.setdefault(key, {}).setdefault(day, set())
    if slot in slots:
        raise LedgerConflictError(f"{what} {key!r} is already committed on {day} slot {slot}")
    slots.add(slot)


def _release(book: _Book, key: Hashable, day: str, slot: int) -> bool:
    days = book.get(key)
    if not days or slot not in days.get(day, ()):
        return False
    days[day].discard(slot)
    # Prune empty parents so a cleared resource looks like one never seen.
    if not days[day]:
        del days[day]
    if not days:
        del book[key]
    return True


class AvailabilityLedger:
    """Run-scoped record of which faculty and rooms are committed at which (day, slot).

    One ledger belongs to exactly one generation run. It is shared by every
    section placed in that run, which is what prevents a faculty member from
    being double-booked across sections. Never reuse an instance across runs.

    `commit` is not idempotent: committing an already committed key raises
    `LedgerConflictError`. The placement engine only commits right after a
    successful `is_free` check, so this never fires during a run.
    """

    def __init__(self) -> None:
        self._faculty: _Book = {}
        self._rooms: _Book = {}

    # Faculty

    def is_free(self, faculty_id: str, day: str, slot: int) -> bool:
        return _is_free(self._faculty, faculty_id, day, slot)

    def commit(self, faculty_id: str, day: str, slot: int) -> None:
        _commit(self._faculty, faculty_id, day, slot, "Faculty")

    def release(self, faculty_id: str, day: str, slot: int) -> bool:
        return _release(self._faculty, faculty_id, day, slot)

    def daily_load(self, faculty_id: str, day: str) -> int:
        return len(self._faculty.get(faculty_id, {}).get(day, ()))

    def committed(self, faculty_id: str) -> list[tuple[str, int]]:
        days = self._faculty.get(faculty_id, {})
        return sorted((d, s) for d, slots in days.items() for s in slots)

    def __contains__(self, faculty_id: object) -> bool:
        return faculty_id in self._faculty

    def __len__(self) -> int:
        return sum(len(slots) for days in self._faculty.values() for slots in days.values())

    # Rooms

    def room_is_free(self, room_id: str, day: str, slot: int) -> bool:
        return _is_free(self._rooms, room_id, day, slot)

    def commit_room(self, room_id: str, day: str, slot: int) -> None:
        _commit(self._rooms, room_id, day, slot, "Room")

    def release_room(self, room_id: str, day: str, slot: int) -> bool:
        return _release(self._rooms, room_id, day, slot)

    def clear(self) -> None:
        self._faculty.clear()
        self._rooms.clear()
