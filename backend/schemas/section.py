from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class SectionIn(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    semester: str = Field(min_length=1)
    # Lab rotation sub-groups, e.g. ["A1", "A2", "A3"].
    batches: list[str] = Field(default_factory=list)

    @field_validator("name", "semester")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()
