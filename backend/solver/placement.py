from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from schemas.faculty import FacultyIn
from schemas.room import RoomIn
from solver.ledger import AvailabilityLedger
from solver.timetable_grid import Assignment, AssignmentKind, FacultyStatus, Timetable


logger = logging.getLogger(__name__)


class PlacementIssueType(str, Enum):
    SHORTFALL = "SHORTFALL"
    NO_FACULTY = "NO_FACULTY"
    UNASSIGNED = "UNASSIGNED"
    SUBSTITUTION = "SUBSTITUTION"


@dataclass(frozen=True)
class PlacementJob:
    """Weekly quota of one subject for one section."""

    subject: str
    section: str
    weekly_hours: int
    kind: AssignmentKind
    subject_id: str | None = None
    faculty_id: str | None = None
    room_id: str | None = None
    needs_faculty: bool = True


@dataclass(frozen=True)
class PlacementIssue:
    issue_type: PlacementIssueType
    section: str
    subject: str
    message: str
    day: str | None = None
    time_slot: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class PlacementOutcome:
    requested: int = 0
    placed: int = 0
    issues: list[PlacementIssue] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return self.requested - self.placed

    def count(self, issue_type: PlacementIssueType) -> int:
        return sum(1 for i in self.issues if i.issue_type == issue_type)

    def absorb(self, other: "PlacementOutcome") -> None:
        self.requested += other.requested
        self.placed += other.placed
        self.issues.extend(other.issues)


class PlacementEngine:
    """Greedy, priority-ordered placement of theory hours into free grid cells.

    Each unit of a job goes to the first empty, assignable slot (morning first)
    of the first day in a shuffled day order that the subject hasn't used yet,
    so a subject gets at most one hour per day. Cells filled by earlier layers
    are never touched. Faculty commitments go through the shared ledger; a busy
    faculty is swapped for any free one, and if nobody is free the cell is still
    committed but tagged unassigned.

    The random source is injected so that a fixed seed reproduces a run.
    """

    def __init__(
        self,
        timetable: Timetable,
        ledger: AvailabilityLedger,
        *,
        faculty: list[FacultyIn],
        rooms: Iterable[RoomIn] = (),
        rng: random.Random,
        free_day: str | None = None,
        strict_free_day: bool = True,
    ):
        self.timetable = timetable
        self.calendar = timetable.calendar
        self.ledger = ledger
        self.faculty = list(faculty)
        self.faculty_by_id = {f.id: f for f in self.faculty}
        self.room_pool = [r for r in rooms if r.kind == "classroom"]
        self.rng = rng
        self.free_day_index = self.calendar.day_index(free_day) if free_day else None
        self.strict_free_day = strict_free_day

    def day_order(self) -> list[int]:
        order = list(range(len(self.calendar.days)))
        self.rng.shuffle(order)
        if self.free_day_index is not None and self.free_day_index in order:
            order.remove(self.free_day_index)
            if not self.strict_free_day:
                # Soft policy: the free day is the last resort.
                order.append(self.free_day_index)
        return order

    def place_all(self, jobs: Iterable[PlacementJob]) -> PlacementOutcome:
        outcome = PlacementOutcome()
        for job in jobs:
            outcome.absorb(self.place(job))
        return outcome

    def place(self, job: PlacementJob) -> PlacementOutcome:
        outcome = PlacementOutcome(requested=job.weekly_hours)
        grid = self.timetable[job.section]
        days_order = self.day_order()
        used_days: set[int] = set()

        logger.debug("Placing %s for section %s (%d slots)", job.subject, job.section, job.weekly_hours)

        for unit in range(job.weekly_hours):
            cell = self._find_cell(grid, days_order, used_days)
            if cell is None:
                message = f"Could not place {job.subject} in section {job.section} - slot {unit + 1}"
                logger.warning(message)
                outcome.issues.append(
                    PlacementIssue(
                        issue_type=PlacementIssueType.SHORTFALL,
                        section=job.section,
                        subject=job.subject,
                        message=message,
                        details={"unit": unit + 1, "weekly_hours": job.weekly_hours, "kind": job.kind.value},
                    )
                )
                continue

            day_idx, slot_idx = cell
            assignment, issue = self._commit(job, day_idx, slot_idx)
            grid.put(assignment)
            used_days.add(day_idx)
            outcome.placed += 1
            if issue is not None:
                outcome.issues.append(issue)

        if outcome.placed < job.weekly_hours:
            logger.warning(
                "Only placed %d/%d slots for %s in section %s",
                outcome.placed,
                job.weekly_hours,
                job.subject,
                job.section,
            )
        return outcome

    def _find_cell(self, grid, days_order: list[int], used_days: set[int]) -> tuple[int, int] | None:
        for day_idx in days_order:
            if day_idx in used_days:
                continue
            for slot in self.calendar.slots:
                if not self.calendar.is_assignable(day_idx, slot.index):
                    continue
                if grid.is_empty(day_idx, slot.index):
                    return day_idx, slot.index
        return None

    def _resolve_faculty(self, job: PlacementJob, day: str, slot: int) -> tuple[str | None, FacultyStatus]:
        if not job.needs_faculty:
            return None, FacultyStatus.NOT_APPLICABLE
        if not job.faculty_id or job.faculty_id not in self.faculty_by_id:
            return None, FacultyStatus.NO_FACULTY
        if self.ledger.is_free(job.faculty_id, day, slot):
            return job.faculty_id, FacultyStatus.ASSIGNED
        for candidate in self.faculty:
            if self.ledger.is_free(candidate.id, day, slot):
                return candidate.id, FacultyStatus.SUBSTITUTED
        return None, FacultyStatus.UNASSIGNED

    def _resolve_room(self, job: PlacementJob, day: str, slot: int) -> str | None:
        if not job.room_id:
            return None
        if self.ledger.room_is_free(job.room_id, day, slot):
            self.ledger.commit_room(job.room_id, day, slot)
            return job.room_id
        for room in self.room_pool:
            if self.ledger.room_is_free(room.id, day, slot):
                self.ledger.commit_room(room.id, day, slot)
                return room.id
        # Nothing free: keep the preferred room; the auditor reports the overlap.
        logger.info("No free room for %s/%s on %s slot %d; keeping %s", job.section, job.subject, day, slot, job.room_id)
        return job.room_id

    def _commit(self, job: PlacementJob, day_idx: int, slot_idx: int) -> tuple[Assignment, PlacementIssue | None]:
        day = self.calendar.days[day_idx]
        time_slot = self.calendar.slots[slot_idx].label

        faculty_id, status = self._resolve_faculty(job, day, slot_idx)
        if faculty_id is not None:
            self.ledger.commit(faculty_id, day, slot_idx)
        room_id = self._resolve_room(job, day, slot_idx)

        faculty = self.faculty_by_id.get(faculty_id) if faculty_id else None
        assignment = Assignment(
            kind=job.kind,
            subject=job.subject,
            subject_id=job.subject_id,
            section=job.section,
            day_index=day_idx,
            slot_index=slot_idx,
            faculty_id=faculty_id,
            faculty_name=faculty.name if faculty else None,
            requested_faculty_id=job.faculty_id,
            faculty_status=status,
            room_id=room_id,
        )

        issue = None
        if status == FacultyStatus.SUBSTITUTED:
            logger.info("Reassigned %s to %s (original faculty busy)", job.subject, faculty.name if faculty else faculty_id)
            issue = PlacementIssue(
                issue_type=PlacementIssueType.SUBSTITUTION,
                section=job.section,
                subject=job.subject,
                message=f"{job.subject} in section {job.section} reassigned to {faculty.name if faculty else faculty_id} (original faculty busy)",
                day=day,
                time_slot=time_slot,
                details={"requested_faculty_id": job.faculty_id, "faculty_id": faculty_id},
            )
        elif status == FacultyStatus.NO_FACULTY:
            message = f"No faculty assigned for {job.subject} in section {job.section}"
            logger.warning(message)
            issue = PlacementIssue(
                issue_type=PlacementIssueType.NO_FACULTY,
                section=job.section,
                subject=job.subject,
                message=message,
                day=day,
                time_slot=time_slot,
                details={"requested_faculty_id": job.faculty_id},
            )
        elif status == FacultyStatus.UNASSIGNED:
            message = f"No free faculty for {job.subject} in section {job.section} on {day} {time_slot}"
            logger.warning(message)
            issue = PlacementIssue(
                issue_type=PlacementIssueType.UNASSIGNED,
                section=job.section,
                subject=job.subject,
                message=message,
                day=day,
                time_slot=time_slot,
                details={"requested_faculty_id": job.faculty_id},
            )
        else:
            logger.debug("Placed %s at %s %s", job.subject, day, time_slot)

        return assignment, issue
