from __future__ import annotations

from collections import Counter

from solver.conflict_auditor import ConflictKind, audit_timetable
from solver.ledger import AvailabilityLedger
from solver.placement import PlacementIssueType, PlacementJob
from solver.timetable_grid import LUNCH, Assignment, AssignmentKind, FacultyStatus, Timetable


def _job(subject: str, section: str = "A", *, hours: int = 4, faculty_id: str | None = "F1", **kwargs) -> PlacementJob:
    kwargs.setdefault("kind", AssignmentKind.USER_THEORY)
    return PlacementJob(subject=subject, section=section, weekly_hours=hours, faculty_id=faculty_id, **kwargs)


def _faculty_keys(tt: Timetable) -> list[tuple[str, int, int]]:
    return [(a.faculty_id, a.day_index, a.slot_index) for a in tt.assignments() if a.faculty_id]


def test_places_weekly_quota_one_hour_per_day(calendar, make_engine):
    tt = Timetable(calendar, ["A"])
    ledger = AvailabilityLedger()
    engine = make_engine(tt, ledger=ledger)

    outcome = engine.place(_job("DBMS"))

    placed = list(tt["A"].assignments())
    assert outcome.requested == 4
    assert outcome.placed == 4
    assert outcome.failed == 0
    assert len({a.day_index for a in placed}) == 4
    assert all(a.faculty_id == "F1" and a.faculty_status == FacultyStatus.ASSIGNED for a in placed)
    assert len(ledger) == 4
    for a in placed:
        assert not ledger.is_free("F1", calendar.days[a.day_index], a.slot_index)


def test_morning_first(calendar, make_engine):
    tt = Timetable(calendar, ["A"])

    make_engine(tt).place(_job("DBMS", hours=5))

    assert {a.slot_index for a in tt["A"].assignments()} == {0}


def test_full_grid_keeps_lunch_and_saturday_cutoff(calendar, make_engine, faculty):
    tt = Timetable(calendar, ["A"])
    engine = make_engine(tt)
    jobs = [_job(f"S{i}", hours=6, faculty_id=faculty[i % 3].id) for i in range(7)]

    outcome = engine.place_all(jobs)

    grid = tt["A"]
    sat = calendar.day_index("Saturday")
    for day_idx in range(len(calendar.days)):
        assert grid.get(day_idx, calendar.lunch_index) is LUNCH
    assert all(a.slot_index != calendar.lunch_index for a in grid.assignments())
    assert all(a.slot_index <= 4 for a in grid.assignments() if a.day_index == sat)
    # 5 weekdays x 6 teachable slots + 4 Saturday morning slots.
    assert outcome.placed == 34
    assert outcome.count(PlacementIssueType.SHORTFALL) == outcome.failed == 42 - 34


def test_at_most_one_unit_per_day(calendar, make_engine):
    tt = Timetable(calendar, ["A"])
    engine = make_engine(tt)

    engine.place_all([_job("DBMS", hours=6), _job("OS", hours=6, faculty_id="F2"), _job("CN", hours=8, faculty_id="F3")])

    per_day = Counter((a.subject, a.day_index) for a in tt["A"].assignments())
    assert max(per_day.values()) == 1
    assert sum(1 for a in tt["A"].assignments() if a.subject == "CN") == 6


def test_saturday_cutoff_causes_shortfall(calendar, make_engine):
    tt = Timetable(calendar, ["A"])
    sat = calendar.day_index("Saturday")
    for slot in range(4):
        tt["A"].put(Assignment(kind=AssignmentKind.FIXED_THEORY, subject="PE", section="A", day_index=sat, slot_index=slot))

    outcome = make_engine(tt).place(_job("DBMS", hours=6))

    assert outcome.placed == 5
    assert [i.issue_type for i in outcome.issues] == [PlacementIssueType.SHORTFALL]
    assert "DBMS" in outcome.issues[0].message
    assert all(a.day_index != sat for a in tt["A"].assignments() if a.subject == "DBMS")


def test_never_overwrites_filled_cells(calendar, make_engine):
    tt = Timetable(calendar, ["A"])
    fixed = Assignment(kind=AssignmentKind.FIXED_LAB, subject="C_A1", section="A", day_index=0, slot_index=0, labels=("C_A1",))
    tt["A"].put(fixed)

    make_engine(tt).place(_job("DBMS", hours=6))

    assert tt["A"].get(0, 0) is fixed


def test_same_seed_same_grid(calendar, make_engine):
    def run(seed: int):
        tt = Timetable(calendar, ["A", "B"])
        engine = make_engine(tt, seed=seed)
        engine.place_all([_job("DBMS", "A"), _job("DBMS", "B", faculty_id="F2"), _job("OS", "A", faculty_id="F3")])
        return {g.section: g.labels() for g in tt}

    assert run(3) == run(3)


def test_busy_faculty_is_substituted(tight_calendar, make_engine):
    tt = Timetable(tight_calendar, ["A", "B"])

    outcome = make_engine(tt).place_all([_job("DBMS", "A", hours=5), _job("DBMS", "B", hours=5)])

    a_cells = list(tt["A"].assignments())
    b_cells = list(tt["B"].assignments())
    assert all(a.faculty_status == FacultyStatus.ASSIGNED and a.faculty_id == "F1" for a in a_cells)
    assert all(a.faculty_status == FacultyStatus.SUBSTITUTED and a.faculty_id == "F2" for a in b_cells)
    assert all(a.requested_faculty_id == "F1" for a in b_cells)
    assert outcome.count(PlacementIssueType.SUBSTITUTION) == 5
    assert "(Dr. Iyer)" in b_cells[0].label
    keys = _faculty_keys(tt)
    assert len(keys) == len(set(keys))


def test_no_free_faculty_is_tagged_unassigned(tight_calendar, make_engine, faculty):
    tt = Timetable(tight_calendar, ["A", "B"])
    engine = make_engine(tt, faculty=faculty[:1])

    outcome = engine.place_all([_job("DBMS", "A", hours=5), _job("DBMS", "B", hours=5)])

    b_cells = list(tt["B"].assignments())
    assert len(b_cells) == 5
    assert all(a.is_unassigned and a.faculty_id is None for a in b_cells)
    assert all("(Unassigned)" in a.label for a in b_cells)
    assert outcome.count(PlacementIssueType.UNASSIGNED) == 5
    assert outcome.failed == 0


def test_two_subjects_sharing_a_faculty_never_double_book(tight_calendar, make_engine, faculty):
    tt = Timetable(tight_calendar, ["A", "B"])
    engine = make_engine(tt, faculty=faculty[:2])

    outcome = engine.place_all(
        [
            _job("DBMS", "A", hours=2),
            _job("Networks", "A", hours=2),
            _job("DBMS", "B", hours=2),
            _job("Networks", "B", hours=2),
        ]
    )

    deviations = outcome.count(PlacementIssueType.SUBSTITUTION) + outcome.count(PlacementIssueType.UNASSIGNED)
    assert deviations >= 1
    keys = _faculty_keys(tt)
    assert len(keys) == len(set(keys))
    assert not [c for c in audit_timetable(tt, faculty=faculty) if c.kind == ConflictKind.FACULTY]


def test_missing_or_unknown_faculty(calendar, make_engine):
    tt = Timetable(calendar, ["A"])
    engine = make_engine(tt)

    outcome = engine.place_all([_job("Ethics", hours=2, faculty_id=None), _job("Yoga", hours=1, faculty_id="F404")])

    cells = list(tt["A"].assignments())
    assert len(cells) == 3
    assert all(a.faculty_status == FacultyStatus.NO_FACULTY and a.faculty_id is None for a in cells)
    assert all("(No Faculty)" in a.label for a in cells)
    assert outcome.count(PlacementIssueType.NO_FACULTY) == 3


def test_sessions_without_faculty(calendar, make_engine):
    tt = Timetable(calendar, ["A"])
    ledger = AvailabilityLedger()

    outcome = make_engine(tt, ledger=ledger).place(
        _job("Placement Training", hours=2, faculty_id=None, kind=AssignmentKind.PLACEMENT, needs_faculty=False)
    )

    cells = list(tt["A"].assignments())
    assert outcome.issues == []
    assert all(a.faculty_status == FacultyStatus.NOT_APPLICABLE for a in cells)
    assert cells[0].label == "Placement Training (Placement)"
    assert len(ledger) == 0


def test_strict_free_day_is_never_used(calendar, make_engine):
    tt = Timetable(calendar, ["A"])
    engine = make_engine(tt, free_day="Monday", strict_free_day=True)

    outcome = engine.place(_job("DBMS", hours=6))

    assert outcome.placed == 5
    assert all(a.day_index != 0 for a in tt["A"].assignments())


def test_soft_free_day_is_last_resort(calendar, make_engine):
    tt = Timetable(calendar, ["A"])
    engine = make_engine(tt, free_day="mon", strict_free_day=False)

    engine.place(_job("DBMS", hours=5))
    assert all(a.day_index != 0 for a in tt["A"].assignments())

    engine.place(_job("OS", hours=6, faculty_id="F2"))
    assert any(a.day_index == 0 for a in tt["A"].assignments() if a.subject == "OS")


def test_day_order_is_a_permutation(calendar, make_engine):
    tt = Timetable(calendar, ["A"])
    order = make_engine(tt).day_order()
    assert sorted(order) == list(range(len(calendar.days)))


def test_busy_room_falls_back_to_a_free_classroom(tight_calendar, make_engine):
    tt = Timetable(tight_calendar, ["A", "B"])
    engine = make_engine(tt)

    engine.place_all(
        [_job("DBMS", "A", hours=5, room_id="R101"), _job("OS", "B", hours=5, faculty_id="F2", room_id="R101")]
    )

    assert {a.room_id for a in tt["A"].assignments()} == {"R101"}
    assert {a.room_id for a in tt["B"].assignments()} == {"R102"}
    assert tt["A"].get(0, 0).label.endswith("@R101")


def test_no_free_room_keeps_preferred_room(tight_calendar, make_engine, rooms, faculty):
    tt = Timetable(tight_calendar, ["A", "B"])
    engine = make_engine(tt, rooms=rooms[:1])

    engine.place_all(
        [_job("DBMS", "A", hours=5, room_id="R101"), _job("OS", "B", hours=5, faculty_id="F2", room_id="R101")]
    )

    conflicts = audit_timetable(tt, faculty=faculty)
    assert {a.room_id for a in tt["B"].assignments()} == {"R101"}
    assert len(conflicts) == 5
    assert {c.kind for c in conflicts} == {ConflictKind.ROOM}
