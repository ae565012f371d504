"""
Person and PersonAchievement models.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from timeline.models.era import Era


class Person(SQLModel, table=True):
    """Person table - a historical figure shown on the timeline."""
    __tablename__ = "person"

    id: Optional[int] = Field(default=None, primary_key=True)
    era_id: Optional[int] = Field(default=None, foreign_key="era.id", index=True)
    name: str
    bio: Optional[str] = None
    description: Optional[str] = None
    born: Optional[int] = None
    died: Optional[int] = None
    image_url: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    era: Optional["Era"] = Relationship(back_populates="persons")
    achievements: List["PersonAchievement"] = Relationship(
        back_populates="person",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class PersonAchievement(SQLModel, table=True):
    """PersonAchievement table - ordered child rows of a person."""
    __tablename__ = "person_achievement"

    id: Optional[int] = Field(default=None, primary_key=True)
    person_id: int = Field(foreign_key="person.id", index=True)
    title: str
    description: str = Field(default="")
    year: Optional[int] = None  # Chronological sort key

    # Relationships
    person: Optional[Person] = Relationship(back_populates="achievements")
