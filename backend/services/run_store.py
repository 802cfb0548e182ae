from __future__ import annotations

import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from services.solver_validation import ValidationConflict
from solver.generator import GenerationResult


@dataclass
class StoredRun:
    id: uuid.UUID
    created_at: datetime
    status: str
    semester: str
    seed: int | None = None
    parameters: dict[str, Any] = field(default_factory=dict)
    result: GenerationResult | None = None
    validation_conflicts: list[ValidationConflict] = field(default_factory=list)


class RunStore:
    """Finished generation runs, newest last, bounded to `max_runs`.

    Only the outputs live here; each run still builds its own grid and ledger.
    Request handlers run on a thread pool, hence the lock.
    """

    def __init__(self, max_runs: int = 50):
        self.max_runs = max_runs
        self._runs: OrderedDict[uuid.UUID, StoredRun] = OrderedDict()
        self._lock = threading.Lock()

    def add(
        self,
        *,
        status: str,
        semester: str,
        seed: int | None,
        parameters: dict[str, Any] | None = None,
        result: GenerationResult | None = None,
        validation_conflicts: list[ValidationConflict] | None = None,
    ) -> StoredRun:
        run = StoredRun(
            id=uuid.uuid4(),
            created_at=datetime.now(timezone.utc),
            status=status,
            semester=semester,
            seed=seed,
            parameters=parameters or {},
            result=result,
            validation_conflicts=validation_conflicts or [],
        )
        with self._lock:
            self._runs[run.id] = run
            while len(self._runs) > self.max_runs:
                self._runs.popitem(last=False)
        return run

    def get(self, run_id: uuid.UUID) -> StoredRun | None:
        with self._lock:
            return self._runs.get(run_id)

    def list(self, *, semester: str | None = None, limit: int = 50) -> list[StoredRun]:
        with self._lock:
            runs = list(self._runs.values())
        if semester is not None:
            runs = [r for r in runs if r.semester == semester]
        runs.reverse()
        return runs[:limit]

    def clear(self) -> None:
        with self._lock:
            self._runs.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._runs)
