from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic.aliases import AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_DIR = Path(__file__).resolve().parents[1]


DEFAULT_TIME_SLOTS = [
    "9:30–10:30",
    "10:30–11:30",
    "11:30–12:30",
    "12:30–1:30",
    "1:30–2:30",
    "2:30–3:30",
    "3:30–4:30",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=BACKEND_DIR / ".env", env_file_encoding="utf-8", extra="ignore")

    # Runtime
    environment: str = Field(default="development", validation_alias=AliasChoices("environment", "ENVIRONMENT"))
    frontend_origin: str = Field(
        default="http://localhost:5173",
        validation_alias=AliasChoices("frontend_origin", "FRONTEND_ORIGIN"),
    )
    # Per-cell placement decisions at DEBUG; off keeps the solver loggers at INFO.
    solver_debug: bool = Field(default=True, validation_alias=AliasChoices("solver_debug", "SOLVER_DEBUG"))

    # Calendar
    time_slots: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TIME_SLOTS),
        validation_alias=AliasChoices("time_slots", "TIME_SLOTS"),
    )
    lunch_index: int = Field(default=4, ge=0, validation_alias=AliasChoices("lunch_index", "LUNCH_INDEX"))
    saturday_cutoff_index: int = Field(
        default=4,
        ge=0,
        validation_alias=AliasChoices("saturday_cutoff_index", "SATURDAY_CUTOFF_INDEX"),
    )

    # Placement
    default_weekly_hours: int = Field(
        default=4,
        ge=1,
        validation_alias=AliasChoices("default_weekly_hours", "DEFAULT_WEEKLY_HOURS"),
    )
    placement_weekly_hours: int = Field(
        default=2,
        ge=0,
        validation_alias=AliasChoices("placement_weekly_hours", "PLACEMENT_WEEKLY_HOURS"),
    )
    # Used only when a request does not carry its own seed.
    default_seed: int | None = Field(default=None, validation_alias=AliasChoices("default_seed", "DEFAULT_SEED"))

    # Finished runs kept in memory for the /runs endpoints.
    max_stored_runs: int = Field(
        default=50,
        ge=1,
        validation_alias=AliasChoices("max_stored_runs", "MAX_STORED_RUNS"),
    )

    @field_validator("frontend_origin")
    @classmethod
    def _normalize_frontend_origin(cls, v: str) -> str:
        # Starlette CORS expects the Origin to match exactly (no trailing slash).
        return v.strip().rstrip("/")

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, v: str) -> str:
        return (v or "development").strip().lower()

    @field_validator("time_slots")
    @classmethod
    def _normalize_time_slots(cls, v: list[str]) -> list[str]:
        slots = [s.strip() for s in v if s and s.strip()]
        if not slots:
            raise ValueError("TIME_SLOTS must contain at least one slot")
        return slots

    @field_validator("default_seed", mode="before")
    @classmethod
    def _empty_seed_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


settings = Settings()
