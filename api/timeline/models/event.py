"""
Event and Subevent models.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from timeline.models.era import Era


class Event(SQLModel, table=True):
    """Event table - a historical event shown on the timeline."""
    __tablename__ = "event"

    id: Optional[int] = Field(default=None, primary_key=True)
    era_id: Optional[int] = Field(default=None, foreign_key="era.id", index=True)
    title: str
    summary: Optional[str] = None
    place: Optional[str] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    image_url: Optional[str] = None  # Local asset path, e.g. /assets/event_12.jpg
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    era: Optional["Era"] = Relationship(back_populates="events")
    subevents: List["Subevent"] = Relationship(
        back_populates="event",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class Subevent(SQLModel, table=True):
    """Subevent table - ordered child rows of an event."""
    __tablename__ = "subevent"

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    title: str
    description: str = Field(default="")
    year: Optional[int] = None  # Chronological sort key

    # Relationships
    event: Optional[Event] = Relationship(back_populates="subevents")
