"""
Era model.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from timeline.models.event import Event
    from timeline.models.person import Person


class Era(SQLModel, table=True):
    """Era table - top-level period grouping events and persons."""
    __tablename__ = "era"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    events: List["Event"] = Relationship(back_populates="era")
    persons: List["Person"] = Relationship(back_populates="era")
