"""
Person schemas.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from timeline.schemas.child import AchievementResponse, ChildContent
from timeline.schemas.reconcile import ReconcileOperationResponse


class PersonResponse(BaseModel):
    """Person response schema."""
    id: int
    era_id: Optional[int] = None
    name: str
    bio: Optional[str] = None
    description: Optional[str] = None
    born: Optional[int] = None
    died: Optional[int] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CreatePersonRequest(BaseModel):
    """Request schema for creating a person with initial achievements."""
    era_id: Optional[int] = None
    name: str = Field(..., min_length=1)
    bio: Optional[str] = None
    description: Optional[str] = None
    born: Optional[int] = None
    died: Optional[int] = None
    achievements: List[ChildContent] = Field(default_factory=list)


class PersonWithAchievementsResponse(BaseModel):
    """A person, their achievements in chronological order and, after an update, the reconcile steps."""
    person: PersonResponse
    achievements: List[AchievementResponse]
    operations: List[ReconcileOperationResponse] = Field(default_factory=list)


class PersonsResponse(BaseModel):
    """Response schema for persons list."""
    persons: List[PersonResponse]
