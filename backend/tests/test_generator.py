from __future__ import annotations

import random

import pytest

from core.config import Settings
from schemas.section import SectionIn
from schemas.solver import LabBatchAssignmentIn
from schemas.subject import SubjectIn
from solver.conflict_auditor import ConflictKind
from solver.generator import ConfigurationError, generate_timetables
from solver.placement import PlacementIssueType
from solver.timetable_grid import LUNCH, AssignmentKind, FacultyStatus


def _by_kind(result, kind: AssignmentKind, section: str | None = None):
    return [
        a
        for a in result.timetable.assignments()
        if a.kind == kind and (section is None or a.section == section)
    ]


def test_clean_run(make_request):
    result = generate_timetables(make_request())

    assert result.semester == "1st"
    assert result.seed == 42
    assert len(result.timetable) == 2
    assert result.conflicts == []
    assert not result.has_conflicts
    assert result.message == "Timetable generated successfully with no conflicts!"
    assert result.summary.sections == 2
    assert result.summary.units_requested == 14
    assert result.summary.units_placed == 14
    assert result.summary.units_failed == 0
    assert [f.id for f in result.faculty] == ["F1", "F2", "F3"]


def test_no_double_booking_across_sections(make_request):
    result = generate_timetables(make_request())

    keys = [
        (a.faculty_id, a.day_index, a.slot_index)
        for a in result.timetable.assignments()
        if a.faculty_id is not None
    ]
    assert len(keys) == len(set(keys))


def test_layer_precedence(make_request):
    payload = make_request(
        fixed_lab_slots={"A": {"Monday_9:30–11:30": ["C_A1", "Phy_A2"]}},
        fixed_theory_slots={"A": {"Monday_10:30–11:30": ["PE"], "Tuesday_9:30–10:30": ["PE"]}},
        floating_subjects=["Maths"],
    )

    result = generate_timetables(payload)

    grid = result.timetable["A"]
    assert grid.get(0, 0).kind == AssignmentKind.FIXED_LAB
    assert grid.get(0, 0).labels == ("C_A1", "Phy_A2")
    assert grid.get(0, 1).kind == AssignmentKind.LAB_BLOCK
    assert grid.get(1, 0).kind == AssignmentKind.FIXED_THEORY
    assert result.summary.fixed_blocks_stamped == 2
    assert result.summary.fixed_blocks_skipped == 1
    # Floating subjects fill free cells before user subjects do.
    maths = _by_kind(result, AssignmentKind.FLOATING_FIXED, "A")
    assert len(maths) == 4
    assert all(a.subject == "Maths" for a in maths)


def test_lunch_is_never_filled(make_request):
    result = generate_timetables(make_request(floating_subjects=["Maths", "Physics"], placement_enabled=True))

    for grid in result.timetable:
        for day_idx in range(len(grid.calendar.days)):
            assert grid.get(day_idx, grid.calendar.lunch_index) is LUNCH


def test_without_saturday(make_request):
    result = generate_timetables(make_request(include_saturday=False))

    calendar = result.timetable.calendar
    assert "Saturday" not in calendar.days
    assert all(len(grid.cells) == 5 for grid in result.timetable)
    assert result.summary.units_placed == 14


def test_saturday_cutoff_respected(make_request):
    subjects = [
        SubjectIn(id=f"s{i}", name=f"Subject {i}", weekly_hours=6, semester="1st", faculty_per_section={"A": "F1"})
        for i in range(6)
    ]
    result = generate_timetables(make_request(subjects=subjects))

    sat = result.timetable.calendar.day_index("Saturday")
    saturday = [a for a in result.timetable.assignments() if a.day_index == sat]
    assert saturday
    assert all(a.slot_index <= 4 for a in saturday)


def test_floating_subject_consumes_user_subject(make_request, faculty):
    subjects = [
        SubjectIn(id="maths", name="Maths", weekly_hours=3, semester="1st", faculty_per_section={"A": "F3", "B": "F3"}),
        SubjectIn(id="dbms", name="DBMS", weekly_hours=4, semester="1st", faculty_per_section={"A": "F1", "B": "F2"}),
    ]

    result = generate_timetables(make_request(subjects=subjects, floating_subjects=["maths"]))

    floating = _by_kind(result, AssignmentKind.FLOATING_FIXED, "A")
    assert len(floating) == 3
    assert {a.subject_id for a in floating} == {"maths"}
    assert {a.subject for a in floating} == {"Maths"}
    assert all(a.requested_faculty_id == "F3" for a in floating)
    user = _by_kind(result, AssignmentKind.USER_THEORY, "A")
    assert {a.subject for a in user} == {"DBMS"}
    assert len(user) == 4


def test_floating_subject_without_declaration_has_no_faculty(make_request):
    result = generate_timetables(make_request(floating_subjects=["DesignThinking"]))

    cells = _by_kind(result, AssignmentKind.FLOATING_FIXED)
    assert len(cells) == 8
    assert all(a.faculty_status == FacultyStatus.NO_FACULTY for a in cells)
    assert sum(1 for i in result.issues if i.issue_type == PlacementIssueType.NO_FACULTY) == 8
    assert result.summary.unassigned == 8
    assert result.has_conflicts


def test_placement_sessions(make_request):
    result = generate_timetables(make_request(placement_enabled=True))

    for section in ("A", "B"):
        sessions = _by_kind(result, AssignmentKind.PLACEMENT, section)
        assert len(sessions) == 2
        assert all(a.faculty_status == FacultyStatus.NOT_APPLICABLE for a in sessions)
        assert all(a.subject == "Placement Training" for a in sessions)

    disabled = generate_timetables(make_request())
    assert _by_kind(disabled, AssignmentKind.PLACEMENT) == []


def test_strict_free_day(make_request):
    result = generate_timetables(make_request(free_day="Wednesday"))

    wed = result.timetable.calendar.day_index("Wednesday")
    assert all(a.day_index != wed for a in result.timetable.assignments())


def test_fixed_blocks_ignore_free_day(make_request):
    payload = make_request(free_day="Monday", fixed_lab_slots={"A": {"Monday_9:30–11:30": ["C_A1"]}})

    result = generate_timetables(payload)

    assert result.timetable["A"].get(0, 0).kind == AssignmentKind.FIXED_LAB


def test_same_seed_same_timetable(make_request):
    first = generate_timetables(make_request(seed=5))
    second = generate_timetables(make_request(seed=5))

    assert [g.labels() for g in first.timetable] == [g.labels() for g in second.timetable]


def test_generated_seed_is_reported(make_request):
    config = Settings(default_seed=None)
    first = generate_timetables(make_request(seed=None), config=config)

    assert isinstance(first.seed, int)
    again = generate_timetables(make_request(seed=first.seed), config=config)
    assert [g.labels() for g in first.timetable] == [g.labels() for g in again.timetable]


def test_institutional_tables_by_default(make_request):
    sections = [SectionIn(id=f"s-{n}", name=n, semester="1", batches=[]) for n in ("A", "B", "C", "D")]
    payload = make_request(
        semester="1",
        sections=sections,
        subjects=[],
        fixed_lab_slots=None,
        fixed_theory_slots=None,
        floating_subjects=None,
    )

    result = generate_timetables(payload)

    grid = result.timetable["A"]
    assert grid.get(0, 0).labels == ("C_A1", "Phy_A2")
    assert grid.get(0, 1).kind == AssignmentKind.LAB_BLOCK
    floating = {a.subject for a in _by_kind(result, AssignmentKind.FLOATING_FIXED, "A")}
    assert floating == {"Maths", "Physics", "DesignThinking", "electronics"}
    assert result.summary.fixed_blocks_stamped == 12


def test_lab_batch_conflicts_reported(make_request):
    batches = [
        LabBatchAssignmentIn(faculty="F3", day="Friday", time="2:30–3:30", lab="CL1", batch="A1"),
        LabBatchAssignmentIn(faculty="Prof. Sen", day="Fri", time="2:30-3:30", lab="CL2", batch="B1"),
    ]

    result = generate_timetables(make_request(lab_batch_assignments=batches))

    labs = [c for c in result.conflicts if c.kind == ConflictKind.LAB]
    assert len(labs) == 1
    assert labs[0].details["owner"] == "CL1"
    assert result.has_conflicts
    assert result.message.startswith("Timetable generated with")


def test_subjects_of_other_semesters_are_ignored(make_request):
    extra = SubjectIn(id="ml", name="ML", weekly_hours=4, semester="7th", faculty_per_section={"A": "F1"})
    payload = make_request()
    payload.subjects.append(extra)

    result = generate_timetables(payload)

    assert all(a.subject != "ML" for a in result.timetable.assignments())


@pytest.mark.parametrize(
    "overrides, conflict_type",
    [
        ({"sections": []}, "NO_SECTIONS"),
        ({"rooms": []}, "NO_ROOMS"),
        ({"semester": "3rd"}, "NO_SECTIONS"),
        ({"lunch_index": 9}, "INVALID_LUNCH_INDEX"),
        ({"time_slots": ["9:30–10:30", "lunch"], "lunch_index": 0}, "INVALID_TIME_SLOT"),
    ],
)
def test_configuration_errors_are_fatal(make_request, overrides, conflict_type):
    with pytest.raises(ConfigurationError) as exc_info:
        generate_timetables(make_request(**overrides))

    assert conflict_type in [c.conflict_type for c in exc_info.value.conflicts]


def test_duplicate_faculty_in_section_is_a_warning(make_request):
    subjects = [
        SubjectIn(id="dbms", name="DBMS", weekly_hours=2, semester="1st", faculty_per_section={"A": "F1"}),
        SubjectIn(id="cn", name="Networks", weekly_hours=2, semester="1st", faculty_per_section={"A": "F1"}),
    ]

    result = generate_timetables(make_request(subjects=subjects))

    assert [w.conflict_type for w in result.warnings] == ["DUPLICATE_FACULTY_ASSIGNMENT"]
    assert result.summary.units_placed == 8


def test_reported_seed_rebuilds_the_run(make_request):
    first = generate_timetables(make_request(seed=42))
    again = generate_timetables(make_request(seed=first.seed))

    assert first.seed == 42
    assert [g.labels() for g in first.timetable] == [g.labels() for g in again.timetable]


def test_random_source_cannot_bypass_the_seed(make_request):
    with pytest.raises(TypeError):
        generate_timetables(make_request(seed=42), rng=random.Random(999))


@pytest.mark.parametrize("value, expected", [("fri", "Friday"), ("SATURDAY", "Saturday"), ("", "none"), ("None", "none")])
def test_free_day_is_normalized_to_a_calendar_day(make_request, value, expected):
    assert make_request(free_day=value).free_day == expected
