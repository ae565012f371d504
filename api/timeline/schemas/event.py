"""
Event schemas.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from timeline.schemas.child import ChildContent, SubeventResponse
from timeline.schemas.reconcile import ReconcileOperationResponse


class EventResponse(BaseModel):
    """Event response schema."""
    id: int
    era_id: Optional[int] = None
    title: str
    summary: Optional[str] = None
    place: Optional[str] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CreateEventRequest(BaseModel):
    """Request schema for creating an event with its initial sub-events."""
    era_id: Optional[int] = None
    title: str = Field(..., min_length=1)
    summary: Optional[str] = None
    place: Optional[str] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    subevents: List[ChildContent] = Field(default_factory=list)


class EventWithSubeventsResponse(BaseModel):
    """An event, its sub-events in chronological order and, after an update, the reconcile steps."""
    event: EventResponse
    subevents: List[SubeventResponse]
    operations: List[ReconcileOperationResponse] = Field(default_factory=list)


class EventsResponse(BaseModel):
    """Response schema for events list."""
    events: List[EventResponse]
