from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field

from core.config import Settings, settings as default_settings
from schemas.faculty import FacultyIn
from schemas.room import RoomIn
from schemas.section import SectionIn
from schemas.solver import GenerateTimetableRequest
from schemas.subject import SubjectIn
from services.institutional_blocks import (
    PLACEMENT_SUBJECT,
    fixed_lab_slots_for,
    fixed_theory_slots_for,
    floating_subjects_for,
    semester_key,
)
from services.solver_validation import ValidationConflict, blocking, validate_prereqs
from solver.calendar_grid import CalendarGrid
from solver.conflict_auditor import Conflict, LabBatchRecord, audit_timetable
from solver.fixed_slots import StampReport, stamp_fixed_labs, stamp_fixed_theory
from solver.ledger import AvailabilityLedger
from solver.placement import PlacementEngine, PlacementIssue, PlacementIssueType, PlacementJob, PlacementOutcome
from solver.timetable_grid import AssignmentKind, Timetable


logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """The request cannot be generated at all (e.g. no sections or rooms)."""

    def __init__(self, conflicts: list[ValidationConflict]):
        self.conflicts = conflicts
        super().__init__("; ".join(c.message for c in conflicts) or "Invalid configuration")


@dataclass
class GenerationSummary:
    sections: int = 0
    units_requested: int = 0
    units_placed: int = 0
    units_failed: int = 0
    substitutions: int = 0
    unassigned: int = 0
    conflicts: int = 0
    fixed_blocks_stamped: int = 0
    fixed_blocks_skipped: int = 0


@dataclass
class GenerationResult:
    semester: str
    seed: int
    timetable: Timetable
    conflicts: list[Conflict] = field(default_factory=list)
    issues: list[PlacementIssue] = field(default_factory=list)
    warnings: list[ValidationConflict] = field(default_factory=list)
    summary: GenerationSummary = field(default_factory=GenerationSummary)
    faculty: list[FacultyIn] = field(default_factory=list)

    @property
    def problem_count(self) -> int:
        """Conflicts plus unit-level problems; substitutions are deviations, not problems."""
        return len(self.conflicts) + sum(1 for i in self.issues if i.issue_type != PlacementIssueType.SUBSTITUTION)

    @property
    def has_conflicts(self) -> bool:
        return self.problem_count > 0

    @property
    def message(self) -> str:
        if not self.has_conflicts:
            return "Timetable generated successfully with no conflicts!"
        return f"Timetable generated with {self.problem_count} conflicts."


def _home_rooms(sections: list[SectionIn], rooms: list[RoomIn]) -> dict[str, str]:
    pool = [r for r in rooms if r.kind == "classroom"] or list(rooms)
    return {s.name: pool[i % len(pool)].id for i, s in enumerate(sections)}


def _weekly_hours(subject: SubjectIn | None, default: int) -> int:
    if subject is None or not subject.weekly_hours:
        return default
    return int(subject.weekly_hours)


def _floating_jobs(
    sections: list[SectionIn],
    floating_names: list[str],
    theory_subjects: list[SubjectIn],
    home_rooms: dict[str, str],
    *,
    default_hours: int,
) -> list[PlacementJob]:
    by_name = {s.display_name.lower(): s for s in theory_subjects}
    jobs: list[PlacementJob] = []
    for section in sections:
        for name in floating_names:
            match = by_name.get(name.strip().lower())
            jobs.append(
                PlacementJob(
                    subject=match.display_name if match else name,
                    subject_id=match.id if match else None,
                    section=section.name,
                    weekly_hours=_weekly_hours(match, default_hours),
                    kind=AssignmentKind.FLOATING_FIXED,
                    faculty_id=match.faculty_per_section.get(section.name) if match else None,
                    room_id=(match.room_per_section.get(section.name) if match else None) or home_rooms[section.name],
                )
            )
    return jobs


def _placement_jobs(sections: list[SectionIn], home_rooms: dict[str, str], *, weekly_hours: int) -> list[PlacementJob]:
    return [
        PlacementJob(
            subject=PLACEMENT_SUBJECT,
            section=s.name,
            weekly_hours=weekly_hours,
            kind=AssignmentKind.PLACEMENT,
            room_id=home_rooms[s.name],
            needs_faculty=False,
        )
        for s in sections
    ]


def _user_jobs(
    sections: list[SectionIn],
    theory_subjects: list[SubjectIn],
    home_rooms: dict[str, str],
    *,
    default_hours: int,
) -> list[PlacementJob]:
    jobs: list[PlacementJob] = []
    for section in sections:
        for subj in theory_subjects:
            jobs.append(
                PlacementJob(
                    subject=subj.display_name,
                    subject_id=subj.id,
                    section=section.name,
                    weekly_hours=_weekly_hours(subj, default_hours),
                    kind=AssignmentKind.USER_THEORY,
                    faculty_id=subj.faculty_per_section.get(section.name),
                    room_id=subj.room_per_section.get(section.name) or home_rooms[section.name],
                )
            )
    return jobs


def generate_timetables(
    payload: GenerateTimetableRequest,
    *,
    config: Settings | None = None,
) -> GenerationResult:
    """Run one generation: fixed labs, fixed theory, floating, user theory, audit.

    Grid and ledger are created here and owned by this call only. Raises
    `ConfigurationError` before any placement when the request can't be
    generated; every later problem is reported in the result instead.
    Placement always draws from `random.Random(seed)` with the seed that is
    returned in the result, so feeding that seed back rebuilds the same grids.
    """
    config = config or default_settings
    sem = semester_key(payload.semester)

    time_slots = payload.time_slots or config.time_slots
    lunch_index = payload.lunch_index if payload.lunch_index is not None else config.lunch_index
    cutoff_index = (
        payload.saturday_cutoff_index if payload.saturday_cutoff_index is not None else config.saturday_cutoff_index
    )

    validation = validate_prereqs(
        semester=payload.semester,
        sections=payload.sections,
        subjects=payload.subjects,
        faculty=payload.faculty,
        rooms=payload.rooms,
        time_slots=time_slots,
        lunch_index=lunch_index,
        include_saturday=payload.include_saturday,
        free_day=payload.free_day,
    )
    errors = blocking(validation)
    if errors:
        logger.warning("Generation for semester %s blocked: %s", payload.semester, [c.conflict_type for c in errors])
        raise ConfigurationError(errors)

    seed = payload.seed if payload.seed is not None else config.default_seed
    if seed is None:
        seed = random.SystemRandom().randrange(2**31)
    rng = random.Random(seed)

    sections = [s for s in payload.sections if semester_key(s.semester) == sem]
    theory_subjects = [s for s in payload.subjects if semester_key(s.semester) == sem and s.kind == "theory"]

    calendar = CalendarGrid.build(
        time_slots=time_slots,
        lunch_index=lunch_index,
        include_saturday=payload.include_saturday,
        saturday_cutoff=payload.saturday_cutoff,
        saturday_cutoff_index=cutoff_index,
    )
    timetable = Timetable(calendar, [s.name for s in sections])
    ledger = AvailabilityLedger()
    home_rooms = _home_rooms(sections, payload.rooms)

    logger.info(
        "Generating semester %s: %d sections, %d theory subjects, seed=%s",
        sem,
        len(sections),
        len(theory_subjects),
        seed,
    )

    # 1. Fixed labs, 2. fixed theory
    lab_table = payload.fixed_lab_slots if payload.fixed_lab_slots is not None else fixed_lab_slots_for(sem)
    theory_table = payload.fixed_theory_slots if payload.fixed_theory_slots is not None else fixed_theory_slots_for(sem)
    stamps: StampReport = stamp_fixed_labs(timetable, lab_table).merge(stamp_fixed_theory(timetable, theory_table))
    logger.info("Fixed blocks: %d stamped, %d skipped", stamps.stamped, len(stamps.skipped))

    engine = PlacementEngine(
        timetable,
        ledger,
        faculty=payload.faculty,
        rooms=payload.rooms,
        rng=rng,
        free_day=None if payload.free_day == "none" else payload.free_day,
        strict_free_day=payload.strict_free_day,
    )

    # 3. Floating-fixed subjects (and placement sessions) get first claim on free cells.
    floating_names = payload.floating_subjects if payload.floating_subjects is not None else floating_subjects_for(sem)
    floating = _floating_jobs(
        sections, floating_names, theory_subjects, home_rooms, default_hours=config.default_weekly_hours
    )
    if payload.placement_enabled and config.placement_weekly_hours > 0:
        floating.extend(_placement_jobs(sections, home_rooms, weekly_hours=config.placement_weekly_hours))
    outcome = PlacementOutcome()
    outcome.absorb(engine.place_all(floating))

    # 4. User-declared theory; a subject consumed as a floating subject is not placed twice.
    consumed = {n.strip().lower() for n in floating_names}
    user_subjects = [s for s in theory_subjects if s.display_name.lower() not in consumed]
    outcome.absorb(
        engine.place_all(_user_jobs(sections, user_subjects, home_rooms, default_hours=config.default_weekly_hours))
    )

    lab_batches = [
        LabBatchRecord(faculty=r.faculty, day=r.day, time=r.time, lab=r.lab, batch=r.batch)
        for r in payload.lab_batch_assignments
    ]
    conflicts = audit_timetable(timetable, faculty=payload.faculty, lab_batches=lab_batches)

    summary = GenerationSummary(
        sections=len(sections),
        units_requested=outcome.requested,
        units_placed=outcome.placed,
        units_failed=outcome.failed,
        substitutions=outcome.count(PlacementIssueType.SUBSTITUTION),
        unassigned=outcome.count(PlacementIssueType.UNASSIGNED) + outcome.count(PlacementIssueType.NO_FACULTY),
        conflicts=len(conflicts),
        fixed_blocks_stamped=stamps.stamped,
        fixed_blocks_skipped=len(stamps.skipped),
    )
    result = GenerationResult(
        semester=sem,
        seed=seed,
        timetable=timetable,
        conflicts=conflicts,
        issues=outcome.issues,
        warnings=[c for c in validation if c.severity != "ERROR"],
        summary=summary,
        faculty=list(payload.faculty),
    )
    logger.info(
        "Generated timetables for %d sections: %d/%d units placed, %d conflicts",
        summary.sections,
        summary.units_placed,
        summary.units_requested,
        summary.conflicts,
    )
    return result
