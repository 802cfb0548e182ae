from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from schemas.faculty import FacultyIn
from schemas.room import RoomIn
from schemas.section import SectionIn
from schemas.subject import SubjectIn
from services.institutional_blocks import semester_key
from solver.calendar_grid import BlockKeyError, split_time_range


@dataclass(frozen=True)
class ValidationConflict:
    conflict_type: str
    message: str
    severity: str = "ERROR"
    section: str | None = None
    subject_id: str | None = None
    faculty_id: str | None = None
    room_id: str | None = None
    metadata: dict[str, Any] | None = None


def blocking(conflicts: list[ValidationConflict]) -> list[ValidationConflict]:
    return [c for c in conflicts if c.severity == "ERROR"]


def validate_prereqs(
    *,
    semester: str,
    sections: list[SectionIn],
    subjects: list[SubjectIn],
    faculty: list[FacultyIn],
    rooms: list[RoomIn],
    time_slots: list[str],
    lunch_index: int,
    include_saturday: bool = True,
    free_day: str = "none",
) -> list[ValidationConflict]:
    """Check a generation request before any placement.

    ERROR entries block the run. WARN entries are reported with the result
    but do not stop it.
    """
    conflicts: list[ValidationConflict] = []
    sem = semester_key(semester)

    semester_sections = [s for s in sections if semester_key(s.semester) == sem]
    if not semester_sections:
        conflicts.append(
            ValidationConflict(
                conflict_type="NO_SECTIONS",
                message=f"No sections defined for semester {semester}. Add sections before generating.",
                metadata={"semester": semester},
            )
        )
    if not rooms:
        conflicts.append(
            ValidationConflict(
                conflict_type="NO_ROOMS",
                message="No rooms defined. Add rooms before generating.",
            )
        )

    for label in time_slots:
        try:
            split_time_range(label)
        except BlockKeyError:
            conflicts.append(
                ValidationConflict(
                    conflict_type="INVALID_TIME_SLOT",
                    message=f"Time slot '{label}' is not of the form Start–End.",
                    metadata={"time_slot": label},
                )
            )
    if not time_slots:
        conflicts.append(ValidationConflict(conflict_type="MISSING_TIME_SLOTS", message="No time slots configured."))
    elif not 0 <= lunch_index < len(time_slots):
        conflicts.append(
            ValidationConflict(
                conflict_type="INVALID_LUNCH_INDEX",
                message=f"Lunch index {lunch_index} is outside the slot table ({len(time_slots)} slots).",
                metadata={"lunch_index": lunch_index, "slots": len(time_slots)},
            )
        )

    seen_names: set[str] = set()
    for s in semester_sections:
        if s.name in seen_names:
            conflicts.append(
                ValidationConflict(
                    conflict_type="DUPLICATE_SECTION_NAME",
                    message=f"Section name '{s.name}' is used more than once in semester {semester}.",
                    section=s.name,
                )
            )
        seen_names.add(s.name)

    if free_day == "Saturday" and not include_saturday:
        conflicts.append(
            ValidationConflict(
                conflict_type="FREE_DAY_NOT_IN_USE",
                severity="WARN",
                message="Free day is Saturday but Saturday is excluded; the free-day policy has no effect.",
            )
        )

    faculty_ids = {f.id for f in faculty}
    room_ids = {r.id for r in rooms}
    section_names = {s.name for s in semester_sections}

    # At most one theory subject per (section, faculty) in a semester.
    subjects_by_section_faculty: dict[tuple[str, str], list[SubjectIn]] = defaultdict(list)

    for subj in subjects:
        if semester_key(subj.semester) != sem:
            continue
        if subj.kind != "theory":
            continue
        for section_name, faculty_id in subj.faculty_per_section.items():
            if section_name not in section_names:
                continue
            if faculty_id not in faculty_ids:
                conflicts.append(
                    ValidationConflict(
                        conflict_type="UNKNOWN_FACULTY",
                        severity="WARN",
                        message=f"{subj.name} names unknown faculty '{faculty_id}' for section {section_name}.",
                        section=section_name,
                        subject_id=subj.id,
                        faculty_id=faculty_id,
                    )
                )
                continue
            subjects_by_section_faculty[(section_name, faculty_id)].append(subj)
        for section_name, room_id in subj.room_per_section.items():
            if section_name in section_names and room_id not in room_ids:
                conflicts.append(
                    ValidationConflict(
                        conflict_type="UNKNOWN_ROOM",
                        severity="WARN",
                        message=f"{subj.name} names unknown room '{room_id}' for section {section_name}.",
                        section=section_name,
                        subject_id=subj.id,
                        room_id=room_id,
                    )
                )

    for (section_name, faculty_id), subs in sorted(subjects_by_section_faculty.items()):
        if len(subs) < 2:
            continue
        conflicts.append(
            ValidationConflict(
                conflict_type="DUPLICATE_FACULTY_ASSIGNMENT",
                severity="WARN",
                message=(
                    f"Faculty '{faculty_id}' is assigned to {len(subs)} theory subjects in section {section_name}: "
                    + ", ".join(s.name for s in subs)
                ),
                section=section_name,
                faculty_id=faculty_id,
                metadata={"subject_ids": [s.id for s in subs]},
            )
        )

    return conflicts
