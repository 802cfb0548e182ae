from __future__ import annotations

import logging
from dataclasses import dataclass, field

from solver.calendar_grid import BlockKeyError
from solver.timetable_grid import Assignment, AssignmentKind, Timetable


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkippedBlock:
    section: str
    key: str
    reason: str


@dataclass
class StampReport:
    stamped: int = 0
    cells: int = 0
    skipped: list[SkippedBlock] = field(default_factory=list)

    def merge(self, other: "StampReport") -> "StampReport":
        return StampReport(
            stamped=self.stamped + other.stamped,
            cells=self.cells + other.cells,
            skipped=[*self.skipped, *other.skipped],
        )


def _skip(report: StampReport, section: str, key: str, reason: str) -> None:
    logger.warning("Skipping fixed block %s for section %s: %s", key, section, reason)
    report.skipped.append(SkippedBlock(section=section, key=key, reason=reason))


def stamp_fixed_labs(timetable: Timetable, table: dict[str, dict[str, list[str]]]) -> StampReport:
    """Stamp fixed lab blocks into the section grids.

    The first slot of each block carries the joined session labels; the rest of
    the block gets a lab-block continuation marker. Blocks whose day or time
    boundaries don't resolve are skipped. The ledger is not touched: fixed
    blocks are cleared with faculty before they reach the generator.
    """
    report = StampReport()
    calendar = timetable.calendar

    for section, blocks in table.items():
        if section not in timetable.grids:
            logger.debug("No section %s in this run; ignoring its %d fixed labs", section, len(blocks))
            continue
        grid = timetable[section]

        for key, sessions in blocks.items():
            try:
                ref = calendar.resolve_block(key)
            except BlockKeyError as exc:
                _skip(report, section, key, str(exc))
                continue

            if any(not grid.is_empty(ref.day_index, s) for s in ref.slot_indices):
                _skip(report, section, key, "overlaps an earlier fixed lab")
                continue

            labels = tuple(sessions)
            first, *rest = ref.slot_indices
            grid.put(
                Assignment(
                    kind=AssignmentKind.FIXED_LAB,
                    subject=", ".join(labels),
                    section=section,
                    day_index=ref.day_index,
                    slot_index=first,
                    labels=labels,
                )
            )
            for slot in rest:
                grid.put(
                    Assignment(
                        kind=AssignmentKind.LAB_BLOCK,
                        subject=", ".join(labels),
                        section=section,
                        day_index=ref.day_index,
                        slot_index=slot,
                        labels=labels,
                    )
                )
            report.stamped += 1
            report.cells += len(ref.slot_indices)
            logger.debug(
                "Fixed lab %s -> section %s %s slots %s",
                labels,
                section,
                calendar.days[ref.day_index],
                list(ref.slot_indices),
            )

    return report


def stamp_fixed_theory(timetable: Timetable, table: dict[str, dict[str, list[str]]]) -> StampReport:
    """Stamp fixed theory blocks, only into cells that are still empty.

    Runs after `stamp_fixed_labs`, so a fixed lab always wins a shared cell.
    """
    report = StampReport()
    calendar = timetable.calendar

    for section, blocks in table.items():
        if section not in timetable.grids:
            continue
        grid = timetable[section]

        for key, sessions in blocks.items():
            try:
                ref = calendar.resolve_block(key)
            except BlockKeyError as exc:
                _skip(report, section, key, str(exc))
                continue

            labels = tuple(sessions)
            written = 0
            for slot in ref.slot_indices:
                if not grid.is_empty(ref.day_index, slot):
                    logger.info(
                        "Slot already filled by fixed lab, skipping fixed theory %s for %s %s slot %d",
                        labels,
                        section,
                        calendar.days[ref.day_index],
                        slot,
                    )
                    continue
                grid.put(
                    Assignment(
                        kind=AssignmentKind.FIXED_THEORY,
                        subject=", ".join(labels),
                        section=section,
                        day_index=ref.day_index,
                        slot_index=slot,
                        labels=labels,
                    )
                )
                written += 1

            if written:
                report.stamped += 1
                report.cells += written
            else:
                _skip(report, section, key, "every slot already taken by a fixed lab")

    return report
