from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_run_store, get_settings
from core.config import Settings
from schemas.solver import (
    AuditRunRequest,
    AuditRunResponse,
    FixedBlocksResponse,
    GenerateTimetableRequest,
    GenerateTimetableResponse,
    GenerationSummaryOut,
    GridCellOut,
    ListRunConflictsResponse,
    ListRunsResponse,
    ListTimeSlotsResponse,
    PlacementIssueOut,
    RunDetail,
    RunSummary,
    SectionGridOut,
    SolverConflict,
    TimeSlotOut,
)
from services.institutional_blocks import (
    PLACEMENT_SUBJECT,
    fixed_lab_slots_for,
    fixed_theory_slots_for,
    floating_subjects_for,
    semester_key,
)
from services.run_store import RunStore, StoredRun
from services.solver_validation import ValidationConflict
from solver.calendar_grid import CalendarGrid
from solver.conflict_auditor import Conflict, LabBatchRecord, audit_timetable
from solver.generator import ConfigurationError, GenerationResult, generate_timetables
from solver.placement import PlacementIssue
from solver.timetable_grid import Assignment, SectionGrid


router = APIRouter()

logger = logging.getLogger(__name__)


def _conflict_out(c: Conflict) -> SolverConflict:
    return SolverConflict(
        id=c.id,
        kind=c.kind.value,
        severity=c.severity.value,
        description=c.description,
        affected_slots=[s.to_dict() for s in c.affected_slots],
        details=dict(c.details),
    )


def _validation_out(c: ValidationConflict, n: int) -> SolverConflict:
    return SolverConflict(
        id=f"config-{c.conflict_type.lower()}-{n}",
        kind="configuration",
        severity="high" if c.severity == "ERROR" else "low",
        description=c.message,
        details={
            "conflict_type": c.conflict_type,
            **({"section": c.section} if c.section else {}),
            **({"subject_id": c.subject_id} if c.subject_id else {}),
            **({"faculty_id": c.faculty_id} if c.faculty_id else {}),
            **({"room_id": c.room_id} if c.room_id else {}),
            **(c.metadata or {}),
        },
    )


def _issue_out(i: PlacementIssue) -> PlacementIssueOut:
    return PlacementIssueOut(
        issue_type=i.issue_type.value,
        section=i.section,
        subject=i.subject,
        message=i.message,
        day=i.day,
        time_slot=i.time_slot,
        details=dict(i.details),
    )


def _cell_out(cell) -> GridCellOut:
    if cell is None:
        return GridCellOut()
    if not isinstance(cell, Assignment):
        return GridCellOut(label=cell.label, kind="lunch")
    return GridCellOut(
        label=cell.label,
        kind=cell.kind.value,
        subject=cell.subject,
        subject_id=cell.subject_id,
        faculty_id=cell.faculty_id,
        faculty_status=cell.faculty_status.value,
        room_id=cell.room_id,
    )


def _grid_out(grid: SectionGrid) -> SectionGridOut:
    return SectionGridOut(
        section=grid.section,
        days=list(grid.calendar.days),
        time_slots=grid.calendar.slot_labels,
        cells=[[_cell_out(c) for c in row] for row in grid.cells],
    )


def _summary_out(result: GenerationResult | None) -> GenerationSummaryOut:
    if result is None:
        return GenerationSummaryOut()
    return GenerationSummaryOut(**vars(result.summary))


def _run_summary(run: StoredRun) -> RunSummary:
    return RunSummary(
        id=run.id,
        created_at=run.created_at,
        status=run.status,
        semester=run.semester,
        seed=run.seed,
        parameters=run.parameters,
    )


def _get_run(store: RunStore, run_id: uuid.UUID) -> StoredRun:
    run = store.get(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="RUN_NOT_FOUND")
    return run


@router.post("/generate", response_model=GenerateTimetableResponse)
def generate_timetable(
    payload: GenerateTimetableRequest,
    store: RunStore = Depends(get_run_store),
    config: Settings = Depends(get_settings),
):
    parameters = {
        "include_saturday": payload.include_saturday,
        "saturday_cutoff": payload.saturday_cutoff,
        "free_day": payload.free_day,
        "strict_free_day": payload.strict_free_day,
        "placement_enabled": payload.placement_enabled,
        "sections": len(payload.sections),
        "subjects": len(payload.subjects),
    }
    sem = semester_key(payload.semester)

    try:
        result = generate_timetables(payload, config=config)
    except ConfigurationError as exc:
        run = store.add(
            status="FAILED_VALIDATION",
            semester=sem,
            seed=payload.seed,
            parameters=parameters,
            validation_conflicts=exc.conflicts,
        )
        return GenerateTimetableResponse(
            run_id=run.id,
            status="FAILED_VALIDATION",
            message=exc.conflicts[0].message if exc.conflicts else str(exc),
            seed=payload.seed,
            conflicts=[_validation_out(c, n) for n, c in enumerate(exc.conflicts, start=1)],
        )

    status = "COMPLETED_WITH_CONFLICTS" if result.has_conflicts else "COMPLETED"
    run = store.add(
        status=status,
        semester=result.semester,
        seed=result.seed,
        parameters=parameters,
        result=result,
        validation_conflicts=result.warnings,
    )
    logger.info("Run %s finished with status %s", run.id, status)

    return GenerateTimetableResponse(
        run_id=run.id,
        status=status,
        message=result.message,
        seed=result.seed,
        grids=[_grid_out(g) for g in result.timetable],
        conflicts=[_conflict_out(c) for c in result.conflicts],
        issues=[_issue_out(i) for i in result.issues],
        warnings=[w.message for w in result.warnings],
        summary=_summary_out(result),
    )


@router.get("/runs", response_model=ListRunsResponse)
def list_runs(
    semester: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    store: RunStore = Depends(get_run_store),
):
    runs = store.list(semester=semester_key(semester) if semester else None, limit=limit)
    return ListRunsResponse(runs=[_run_summary(r) for r in runs])


@router.get("/runs/{run_id}", response_model=RunDetail)
def get_run(run_id: uuid.UUID, store: RunStore = Depends(get_run_store)):
    run = _get_run(store, run_id)
    result = run.result
    return RunDetail(
        **_run_summary(run).model_dump(),
        conflicts_total=len(result.conflicts) if result else len(run.validation_conflicts),
        summary=_summary_out(result),
        grids=[_grid_out(g) for g in result.timetable] if result else [],
    )


@router.get("/runs/{run_id}/conflicts", response_model=ListRunConflictsResponse)
def list_run_conflicts(run_id: uuid.UUID, store: RunStore = Depends(get_run_store)):
    run = _get_run(store, run_id)
    if run.result is None:
        conflicts = [_validation_out(c, n) for n, c in enumerate(run.validation_conflicts, start=1)]
    else:
        conflicts = [_conflict_out(c) for c in run.result.conflicts]
    return ListRunConflictsResponse(run_id=run.id, conflicts=conflicts)


@router.post("/runs/{run_id}/audit", response_model=AuditRunResponse)
def audit_run(run_id: uuid.UUID, payload: AuditRunRequest, store: RunStore = Depends(get_run_store)):
    """Re-audit a stored run together with lab batch sittings recorded elsewhere.

    Read-only: the stored run and its conflict list are left as they were.
    """
    run = _get_run(store, run_id)
    if run.result is None:
        raise HTTPException(status_code=409, detail="RUN_HAS_NO_TIMETABLE")

    logger.debug("Re-auditing run %s with %d lab batch records", run.id, len(payload.lab_batch_assignments))
    records = [
        LabBatchRecord(faculty=r.faculty, day=r.day, time=r.time, lab=r.lab, batch=r.batch)
        for r in payload.lab_batch_assignments
    ]
    conflicts = audit_timetable(
        run.result.timetable,
        faculty=run.result.faculty,
        lab_batches=records,
    )
    return AuditRunResponse(run_id=run.id, conflicts=[_conflict_out(c) for c in conflicts])


@router.get("/time-slots", response_model=ListTimeSlotsResponse)
def list_time_slots(
    include_saturday: bool = Query(default=True),
    saturday_cutoff: bool = Query(default=True),
    config: Settings = Depends(get_settings),
):
    calendar = CalendarGrid.build(
        time_slots=config.time_slots,
        lunch_index=config.lunch_index,
        include_saturday=include_saturday,
        saturday_cutoff=saturday_cutoff,
        saturday_cutoff_index=config.saturday_cutoff_index,
    )
    return ListTimeSlotsResponse(
        days=list(calendar.days),
        slots=[
            TimeSlotOut(
                slot_index=s.index,
                label=s.label,
                start_time=s.start,
                end_time=s.end,
                is_lunch=calendar.is_lunch(s.index),
            )
            for s in calendar.slots
        ],
        saturday_cutoff_index=calendar.saturday_cutoff_index,
    )


@router.get("/fixed-blocks", response_model=FixedBlocksResponse)
def get_fixed_blocks(semester: str = Query(min_length=1)):
    sem = semester_key(semester)
    return FixedBlocksResponse(
        semester=sem,
        fixed_lab_slots=fixed_lab_slots_for(sem),
        fixed_theory_slots=fixed_theory_slots_for(sem),
        floating_subjects=floating_subjects_for(sem),
        placement_subject=PLACEMENT_SUBJECT,
    )
