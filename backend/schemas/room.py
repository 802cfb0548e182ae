from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class RoomIn(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    kind: Literal["classroom", "lab"] = "classroom"
    # Informational only; the engine does not enforce it.
    daily_usage_limit: int | None = Field(default=None, ge=0)

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            # Older clients send "class".
            return "classroom" if v == "class" else v
        return v
