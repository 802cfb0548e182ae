from __future__ import annotations

from datetime import datetime
import uuid
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from schemas.faculty import FacultyIn
from schemas.room import RoomIn
from schemas.section import SectionIn
from schemas.subject import SubjectIn
from solver.calendar_grid import ALL_DAYS


# section name -> "Day_Start–End" -> session labels
FixedBlockTable = dict[str, dict[str, list[str]]]


class LabBatchAssignmentIn(BaseModel):
    """One externally recorded lab batch sitting (from the lab rotation planner)."""

    faculty: str = Field(min_length=1)
    day: str = Field(min_length=1)
    time: str = Field(min_length=1)
    lab: str = ""
    batch: str = ""


class GenerateTimetableRequest(BaseModel):
    semester: str = Field(min_length=1)
    sections: list[SectionIn] = Field(default_factory=list)
    subjects: list[SubjectIn] = Field(default_factory=list)
    faculty: list[FacultyIn] = Field(default_factory=list)
    rooms: list[RoomIn] = Field(default_factory=list)

    # Policy flags
    include_saturday: bool = True
    saturday_cutoff: bool = True
    free_day: str = "none"
    strict_free_day: bool = True
    placement_enabled: bool = False

    seed: int | None = None

    # Calendar overrides; None means the configured defaults.
    time_slots: list[str] | None = None
    lunch_index: int | None = Field(default=None, ge=0)
    saturday_cutoff_index: int | None = Field(default=None, ge=0)

    # Institutional tables for this semester; None means the built-in tables.
    fixed_lab_slots: FixedBlockTable | None = None
    fixed_theory_slots: FixedBlockTable | None = None
    floating_subjects: list[str] | None = None

    lab_batch_assignments: list[LabBatchAssignmentIn] = Field(default_factory=list)

    @field_validator("semester")
    @classmethod
    def _strip_semester(cls, v: str) -> str:
        return v.strip()

    @field_validator("free_day")
    @classmethod
    def _normalize_free_day(cls, v: str) -> str:
        v = (v or "none").strip()
        if v.lower() in {"", "none"}:
            return "none"
        for name in ALL_DAYS:
            if name[:3].lower() == v[:3].lower():
                return name
        raise ValueError("free_day must be a weekday name (Monday..Saturday) or 'none'")


class SolverConflict(BaseModel):
    id: str
    kind: Literal["faculty", "room", "lab", "configuration"]
    severity: Literal["high", "medium", "low"] = "high"
    description: str
    affected_slots: list[dict[str, Any]] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)


class PlacementIssueOut(BaseModel):
    issue_type: Literal["SHORTFALL", "NO_FACULTY", "UNASSIGNED", "SUBSTITUTION"]
    section: str
    subject: str
    message: str
    day: str | None = None
    time_slot: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class GridCellOut(BaseModel):
    label: str = ""
    kind: str | None = None
    subject: str | None = None
    subject_id: str | None = None
    faculty_id: str | None = None
    faculty_status: str | None = None
    room_id: str | None = None


class SectionGridOut(BaseModel):
    section: str
    days: list[str]
    time_slots: list[str]
    cells: list[list[GridCellOut]]


class GenerationSummaryOut(BaseModel):
    sections: int = 0
    units_requested: int = 0
    units_placed: int = 0
    units_failed: int = 0
    substitutions: int = 0
    unassigned: int = 0
    conflicts: int = 0
    fixed_blocks_stamped: int = 0
    fixed_blocks_skipped: int = 0


class GenerateTimetableResponse(BaseModel):
    run_id: uuid.UUID
    status: Literal["FAILED_VALIDATION", "COMPLETED", "COMPLETED_WITH_CONFLICTS"]
    message: str = ""
    seed: int | None = None
    grids: list[SectionGridOut] = Field(default_factory=list)
    conflicts: list[SolverConflict] = Field(default_factory=list)
    issues: list[PlacementIssueOut] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    summary: GenerationSummaryOut = Field(default_factory=GenerationSummaryOut)


class AuditRunRequest(BaseModel):
    lab_batch_assignments: list[LabBatchAssignmentIn] = Field(default_factory=list)


class AuditRunResponse(BaseModel):
    run_id: uuid.UUID
    conflicts: list[SolverConflict] = Field(default_factory=list)


class RunSummary(BaseModel):
    id: uuid.UUID
    created_at: datetime
    status: str
    semester: str
    seed: int | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class RunDetail(RunSummary):
    conflicts_total: int = 0
    summary: GenerationSummaryOut = Field(default_factory=GenerationSummaryOut)
    grids: list[SectionGridOut] = Field(default_factory=list)


class ListRunsResponse(BaseModel):
    runs: list[RunSummary] = Field(default_factory=list)


class ListRunConflictsResponse(BaseModel):
    run_id: uuid.UUID
    conflicts: list[SolverConflict] = Field(default_factory=list)


class TimeSlotOut(BaseModel):
    slot_index: int
    label: str
    start_time: str
    end_time: str
    is_lunch: bool = False


class ListTimeSlotsResponse(BaseModel):
    days: list[str] = Field(default_factory=list)
    slots: list[TimeSlotOut] = Field(default_factory=list)
    saturday_cutoff_index: int | None = None


class FixedBlocksResponse(BaseModel):
    semester: str
    fixed_lab_slots: FixedBlockTable = Field(default_factory=dict)
    fixed_theory_slots: FixedBlockTable = Field(default_factory=dict)
    floating_subjects: list[str] = Field(default_factory=list)
    placement_subject: str | None = None
