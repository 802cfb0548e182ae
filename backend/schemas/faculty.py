from __future__ import annotations

from pydantic import BaseModel, Field


class FacultyIn(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    max_hours_per_day: int = Field(default=6, ge=0, le=12)
