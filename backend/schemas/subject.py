from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class SubjectIn(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    code: str = ""
    # None / 0 means "use the configured default" (4 per week).
    weekly_hours: int | None = Field(default=None, ge=0, le=12)
    kind: Literal["theory", "lab"] = "theory"
    semester: str = Field(min_length=1)
    # section name -> faculty id
    faculty_per_section: dict[str, str] = Field(default_factory=dict)
    # section name -> room id (theory only)
    room_per_section: dict[str, str] = Field(default_factory=dict)

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("semester")
    @classmethod
    def _strip_semester(cls, v: str) -> str:
        return v.strip()

    @property
    def display_name(self) -> str:
        return self.name.strip()
