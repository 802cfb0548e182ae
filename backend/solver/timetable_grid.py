from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Union

from solver.calendar_grid import CalendarGrid


class AssignmentKind(str, Enum):
    FIXED_LAB = "fixed-lab"
    LAB_BLOCK = "lab-block"
    FIXED_THEORY = "fixed-theory"
    FLOATING_FIXED = "floating-fixed"
    PLACEMENT = "placement"
    USER_THEORY = "user-theory"


class FacultyStatus(str, Enum):
    ASSIGNED = "assigned"
    SUBSTITUTED = "substituted"
    UNASSIGNED = "unassigned"
    NO_FACULTY = "no-faculty"
    NOT_APPLICABLE = "not-applicable"


_KIND_SUFFIX = {
    AssignmentKind.FIXED_LAB: "Fixed Lab",
    AssignmentKind.FIXED_THEORY: "Fixed Theory",
    AssignmentKind.FLOATING_FIXED: "Floating Fixed",
    AssignmentKind.PLACEMENT: "Placement",
}


class _Lunch:
    __slots__ = ()

    label = "Lunch Break"

    def __repr__(self) -> str:
        return "LUNCH"


LUNCH = _Lunch()


@dataclass(frozen=True)
class Assignment:
    kind: AssignmentKind
    subject: str
    section: str
    day_index: int
    slot_index: int
    subject_id: str | None = None
    labels: tuple[str, ...] = ()
    faculty_id: str | None = None
    faculty_name: str | None = None
    requested_faculty_id: str | None = None
    faculty_status: FacultyStatus = FacultyStatus.NOT_APPLICABLE
    room_id: str | None = None

    @property
    def is_unassigned(self) -> bool:
        return self.faculty_status in (FacultyStatus.UNASSIGNED, FacultyStatus.NO_FACULTY)

    @property
    def is_fixed(self) -> bool:
        return self.kind in (AssignmentKind.FIXED_LAB, AssignmentKind.LAB_BLOCK, AssignmentKind.FIXED_THEORY)

    @property
    def label(self) -> str:
        if self.kind == AssignmentKind.LAB_BLOCK:
            return "(Lab Block)"
        if self.kind in (AssignmentKind.FIXED_LAB, AssignmentKind.FIXED_THEORY):
            return f"{', '.join(self.labels) or self.subject} ({_KIND_SUFFIX[self.kind]})"

        parts = [self.subject]
        if self.faculty_status == FacultyStatus.NO_FACULTY:
            parts.append("(No Faculty)")
        elif self.faculty_status == FacultyStatus.UNASSIGNED:
            parts.append("(Unassigned)")
        elif self.faculty_name or self.faculty_id:
            parts.append(f"({self.faculty_name or self.faculty_id})")
        if self.kind in _KIND_SUFFIX:
            parts.append(f"({_KIND_SUFFIX[self.kind]})")
        if self.room_id:
            parts.append(f"@{self.room_id}")
        return " ".join(parts)


Cell = Union[None, _Lunch, Assignment]


@dataclass
class SectionGrid:
    """day × slot cells for one section."""

    section: str
    calendar: CalendarGrid
    cells: list[list[Cell]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.cells:
            self.cells = [
                [LUNCH if self.calendar.is_lunch(s.index) else None for s in self.calendar.slots]
                for _ in self.calendar.days
            ]

    def get(self, day_index: int, slot_index: int) -> Cell:
        return self.cells[day_index][slot_index]

    def is_empty(self, day_index: int, slot_index: int) -> bool:
        return self.cells[day_index][slot_index] is None

    def put(self, assignment: Assignment) -> None:
        """Write into an empty cell; filled cells are never overwritten."""
        current = self.cells[assignment.day_index][assignment.slot_index]
        if current is not None:
            raise ValueError(
                f"Cell {self.calendar.days[assignment.day_index]} slot {assignment.slot_index} "
                f"of section {self.section} is already filled"
            )
        self.cells[assignment.day_index][assignment.slot_index] = assignment

    def assignments(self) -> Iterator[Assignment]:
        for row in self.cells:
            for cell in row:
                if isinstance(cell, Assignment):
                    yield cell

    def labels(self) -> list[list[str]]:
        out: list[list[str]] = []
        for row in self.cells:
            out.append(["" if c is None else c.label for c in row])
        return out


class Timetable:
    """Per-section grids of one generation run, in section order."""

    def __init__(self, calendar: CalendarGrid, section_names: list[str]):
        self.calendar = calendar
        self.grids: dict[str, SectionGrid] = {name: SectionGrid(section=name, calendar=calendar) for name in section_names}

    def __getitem__(self, section: str) -> SectionGrid:
        return self.grids[section]

    def __iter__(self) -> Iterator[SectionGrid]:
        return iter(self.grids.values())

    def __len__(self) -> int:
        return len(self.grids)

    def assignments(self) -> Iterator[Assignment]:
        for grid in self.grids.values():
            yield from grid.assignments()
