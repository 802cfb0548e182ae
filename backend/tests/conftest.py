from __future__ import annotations

import random

import pytest

from core.config import DEFAULT_TIME_SLOTS
from schemas.faculty import FacultyIn
from schemas.room import RoomIn
from schemas.section import SectionIn
from schemas.solver import GenerateTimetableRequest
from schemas.subject import SubjectIn
from solver.calendar_grid import CalendarGrid
from solver.ledger import AvailabilityLedger
from solver.placement import PlacementEngine
from solver.timetable_grid import Timetable


@pytest.fixture
def calendar() -> CalendarGrid:
    return CalendarGrid.build(time_slots=list(DEFAULT_TIME_SLOTS), lunch_index=4, saturday_cutoff_index=4)


@pytest.fixture
def tight_calendar() -> CalendarGrid:
    """Five weekdays with a single teachable slot per day."""
    return CalendarGrid.build(
        time_slots=["9:30–10:30", "10:30–11:30"],
        lunch_index=1,
        include_saturday=False,
    )


@pytest.fixture
def faculty() -> list[FacultyIn]:
    return [
        FacultyIn(id="F1", name="Dr. Rao", max_hours_per_day=6),
        FacultyIn(id="F2", name="Dr. Iyer", max_hours_per_day=6),
        FacultyIn(id="F3", name="Prof. Sen", max_hours_per_day=6),
    ]


@pytest.fixture
def rooms() -> list[RoomIn]:
    return [
        RoomIn(id="R101", name="Room 101", kind="classroom"),
        RoomIn(id="R102", name="Room 102", kind="classroom"),
        RoomIn(id="L1", name="Computer Lab", kind="lab"),
    ]


@pytest.fixture
def make_engine(faculty, rooms):
    def _make(timetable: Timetable, *, ledger: AvailabilityLedger | None = None, seed: int = 7, **kwargs):
        kwargs.setdefault("faculty", faculty)
        kwargs.setdefault("rooms", rooms)
        return PlacementEngine(
            timetable,
            ledger if ledger is not None else AvailabilityLedger(),
            rng=random.Random(seed),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_request(faculty, rooms):
    """Generation request for semester 1st with sections A and B and no institutional tables."""

    def _make(**overrides) -> GenerateTimetableRequest:
        data = {
            "semester": "1st",
            "sections": [
                SectionIn(id="s-a", name="A", semester="1st", batches=["A1", "A2"]),
                SectionIn(id="s-b", name="B", semester="1st", batches=["B1", "B2"]),
            ],
            "subjects": [
                SubjectIn(
                    id="dbms",
                    name="DBMS",
                    weekly_hours=4,
                    semester="1st",
                    faculty_per_section={"A": "F1", "B": "F2"},
                ),
                SubjectIn(
                    id="os",
                    name="Operating Systems",
                    weekly_hours=3,
                    semester="1st",
                    faculty_per_section={"A": "F2", "B": "F3"},
                    room_per_section={"B": "R102"},
                ),
            ],
            "faculty": faculty,
            "rooms": rooms,
            "seed": 42,
            "fixed_lab_slots": {},
            "fixed_theory_slots": {},
            "floating_subjects": [],
        }
        data.update(overrides)
        return GenerateTimetableRequest(**data)

    return _make
