"""
Child record schemas (sub-events and person achievements).
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class ChildContent(BaseModel):
    """
    One submitted row of a child list.

    `id` is optional: rows without ids are matched to stored rows by position,
    rows with ids are matched by id.
    """
    id: Optional[int] = Field(None, description="ID of the stored row this item edits, if known")
    title: Optional[str] = Field(None, description="Title; blank rows are ignored")
    description: Optional[str] = Field(None, description="Free text, stored as '' when absent")
    year: Optional[int] = Field(None, description="Year, used as the chronological sort key")

    @field_validator("year", mode="before")
    @classmethod
    def empty_year_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_blank(self) -> bool:
        return not (self.title or "").strip()


class ChildResponse(BaseModel):
    """Stored child row."""
    id: int
    title: str
    description: str = ""
    year: Optional[int] = None

    class Config:
        from_attributes = True


class SubeventResponse(ChildResponse):
    """Subevent response schema."""
    event_id: int


class AchievementResponse(ChildResponse):
    """Person achievement response schema."""
    person_id: int
