from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from schemas.faculty import FacultyIn
from solver.calendar_grid import short_day
from solver.timetable_grid import Timetable


logger = logging.getLogger(__name__)


class ConflictKind(str, Enum):
    FACULTY = "faculty"
    ROOM = "room"
    LAB = "lab"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class AffectedSlot:
    day: str
    time_slot: str
    sections: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"day": self.day, "time_slot": self.time_slot, "sections": list(self.sections)}


@dataclass(frozen=True)
class Conflict:
    id: str
    kind: ConflictKind
    severity: Severity
    description: str
    affected_slots: tuple[AffectedSlot, ...] = ()
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LabBatchRecord:
    faculty: str
    day: str
    time: str
    lab: str = ""
    batch: str = ""


class ConflictAuditor:
    """Read-only overlap scan over committed grids.

    Overlaps are recomputed from the grids themselves rather than read from the
    ledger, so blocks merged without a ledger update are still caught. For each
    (resource, day, slot) key the first sighting owns it and every later
    sighting is reported. Conflict ids depend only on the input, so auditing
    the same grids twice gives the same list.
    """

    def __init__(self, timetable: Timetable, *, faculty: Iterable[FacultyIn] = ()):
        self.timetable = timetable
        self.calendar = timetable.calendar
        self.faculty_by_id = {f.id: f for f in faculty}
        self._faculty_id_by_name = {f.name.strip().lower(): f.id for f in self.faculty_by_id.values()}

    def audit(self, lab_batches: Iterable[LabBatchRecord] = ()) -> list[Conflict]:
        owners: dict[tuple[str, int, int], str] = {}
        sightings: dict[tuple[str, int, int], int] = defaultdict(int)

        conflicts = self._faculty_overlaps(owners, sightings)
        conflicts.extend(self._lab_overlaps(lab_batches, owners, sightings))
        conflicts.extend(self._room_overlaps())
        conflicts.extend(self._daily_overloads())

        if conflicts:
            logger.info("Audit found %d conflicts across %d sections", len(conflicts), len(self.timetable))
        return conflicts

    def _faculty_name(self, faculty_id: str) -> str:
        f = self.faculty_by_id.get(faculty_id)
        return f.name if f else faculty_id

    def _slot_label(self, slot_idx: int) -> str:
        return self.calendar.slots[slot_idx].label

    def _faculty_overlaps(self, owners, sightings) -> list[Conflict]:
        conflicts: list[Conflict] = []
        for assignment in self.timetable.assignments():
            if not assignment.faculty_id:
                continue
            key = (assignment.faculty_id, assignment.day_index, assignment.slot_index)
            sightings[key] += 1
            owner = owners.get(key)
            if owner is None:
                owners[key] = assignment.section
                continue

            day = short_day(self.calendar.days[assignment.day_index])
            time_slot = self._slot_label(assignment.slot_index)
            name = self._faculty_name(assignment.faculty_id)
            conflicts.append(
                Conflict(
                    id=f"conflict-{assignment.faculty_id}-{assignment.day_index}-{assignment.slot_index}-{sightings[key]}",
                    kind=ConflictKind.FACULTY,
                    severity=Severity.HIGH,
                    description=(
                        f'Faculty {name} has overlapping classes for "{owner}" and "{assignment.section}" '
                        f"on {day} {time_slot}"
                    ),
                    affected_slots=(AffectedSlot(day=day, time_slot=time_slot, sections=(owner, assignment.section)),),
                    details={"faculty_id": assignment.faculty_id, "subject": assignment.subject},
                )
            )
        return conflicts

    def _lab_overlaps(self, lab_batches, owners, sightings) -> list[Conflict]:
        conflicts: list[Conflict] = []
        for record in lab_batches:
            day_idx = self.calendar.day_index(record.day)
            slot_idx = self.calendar.slot_index(record.time)
            if day_idx is None or slot_idx is None:
                logger.warning("Lab batch record %s %s for %s does not map onto the calendar", record.day, record.time, record.faculty)
                continue

            faculty_id = record.faculty
            if faculty_id not in self.faculty_by_id:
                faculty_id = self._faculty_id_by_name.get(record.faculty.strip().lower(), record.faculty)

            key = (faculty_id, day_idx, slot_idx)
            sightings[key] += 1
            if key not in owners:
                owners[key] = record.lab
                continue

            day = short_day(self.calendar.days[day_idx])
            time_slot = self._slot_label(slot_idx)
            conflicts.append(
                Conflict(
                    id=f"lab-{faculty_id}-{day}-{time_slot}-{sightings[key]}",
                    kind=ConflictKind.LAB,
                    severity=Severity.MEDIUM,
                    description=f'Lab clash for {self._faculty_name(faculty_id)} at {day} {time_slot} in "{record.lab}" for batch {record.batch}.',
                    affected_slots=(AffectedSlot(day=day, time_slot=time_slot, sections=(record.batch,)),),
                    details={"faculty_id": faculty_id, "owner": owners[key], "lab": record.lab},
                )
            )
        return conflicts

    def _room_overlaps(self) -> list[Conflict]:
        conflicts: list[Conflict] = []
        owners: dict[tuple[str, int, int], str] = {}
        sightings: dict[tuple[str, int, int], int] = defaultdict(int)
        for assignment in self.timetable.assignments():
            if not assignment.room_id:
                continue
            key = (assignment.room_id, assignment.day_index, assignment.slot_index)
            sightings[key] += 1
            owner = owners.setdefault(key, assignment.section)
            if sightings[key] == 1:
                continue

            day = short_day(self.calendar.days[assignment.day_index])
            time_slot = self._slot_label(assignment.slot_index)
            conflicts.append(
                Conflict(
                    id=f"room-{assignment.room_id}-{assignment.day_index}-{assignment.slot_index}-{sightings[key]}",
                    kind=ConflictKind.ROOM,
                    severity=Severity.HIGH,
                    description=f'Room {assignment.room_id} is booked for "{owner}" and "{assignment.section}" on {day} {time_slot}',
                    affected_slots=(AffectedSlot(day=day, time_slot=time_slot, sections=(owner, assignment.section)),),
                    details={"room_id": assignment.room_id},
                )
            )
        return conflicts

    def _daily_overloads(self) -> list[Conflict]:
        load: dict[tuple[str, int], list[tuple[str, int]]] = defaultdict(list)
        for assignment in self.timetable.assignments():
            if assignment.faculty_id:
                load[(assignment.faculty_id, assignment.day_index)].append((assignment.section, assignment.slot_index))

        conflicts: list[Conflict] = []
        for (faculty_id, day_idx), entries in load.items():
            f = self.faculty_by_id.get(faculty_id)
            if f is None or len(entries) <= f.max_hours_per_day:
                continue
            day = short_day(self.calendar.days[day_idx])
            conflicts.append(
                Conflict(
                    id=f"load-{faculty_id}-{day_idx}",
                    kind=ConflictKind.FACULTY,
                    severity=Severity.LOW,
                    description=f"Faculty {f.name} teaches {len(entries)} hours on {day}, above the limit of {f.max_hours_per_day}",
                    affected_slots=tuple(
                        AffectedSlot(day=day, time_slot=self._slot_label(slot), sections=(section,))
                        for section, slot in sorted(entries, key=lambda e: e[1])
                    ),
                    details={"faculty_id": faculty_id, "hours": len(entries), "max_hours_per_day": f.max_hours_per_day},
                )
            )
        return conflicts


def audit_timetable(
    timetable: Timetable,
    *,
    faculty: Iterable[FacultyIn] = (),
    lab_batches: Iterable[LabBatchRecord] = (),
) -> list[Conflict]:
    return ConflictAuditor(timetable, faculty=faculty).audit(lab_batches)
