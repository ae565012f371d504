"""
Card model.
"""
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from sqlalchemy import Column, String as SAString
from timeline.models.enums import ProficiencyLevel


class Card(SQLModel, table=True):
    """Card table - a question/answer flashcard and its review schedule."""
    __tablename__ = "card"

    id: Optional[int] = Field(default=None, primary_key=True)
    question: str
    answer: str
    status: ProficiencyLevel = Field(
        default=ProficiencyLevel.NEW,
        sa_column=Column(SAString, nullable=False, default=ProficiencyLevel.NEW.value)
    )  # stored as string, compared as ProficiencyLevel (str enum)
    due_at: Optional[datetime] = Field(default=None, index=True)  # Naive UTC; None = due immediately
    person_id: Optional[int] = Field(default=None, foreign_key="person.id", index=True)
    event_id: Optional[int] = Field(default=None, foreign_key="event.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
