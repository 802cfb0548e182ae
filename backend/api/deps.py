from __future__ import annotations

from functools import lru_cache

from core.config import Settings, settings
from services.run_store import RunStore


@lru_cache(maxsize=1)
def _run_store() -> RunStore:
    return RunStore(max_runs=settings.max_stored_runs)


def get_run_store() -> RunStore:
    return _run_store()


def get_settings() -> Settings:
    return settings
