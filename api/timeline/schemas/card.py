"""
Card schemas.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from timeline.models.enums import GenerationTarget, ProficiencyLevel


class CardResponse(BaseModel):
    """Card response schema."""
    id: int
    question: str
    answer: str
    status: ProficiencyLevel = ProficiencyLevel.NEW
    due_at: Optional[datetime] = None
    person_id: Optional[int] = None
    event_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CardsResponse(BaseModel):
    """Response schema for card lists."""
    cards: List[CardResponse]
    count: int


class ReviewRequest(BaseModel):
    """Reviewer's self-assessment of one card."""
    correct: bool = Field(..., description="True if the card was answered correctly")


class ReviewResponse(BaseModel):
    """Card state after a review."""
    card: CardResponse
    previous_status: ProficiencyLevel
    interval_days: int


class UpdateCardRequest(BaseModel):
    """Edit a card. Omitted fields are left unchanged.

    `status` and `due_at` are set together by review clients that schedule locally.
    """
    question: Optional[str] = None
    answer: Optional[str] = None
    status: Optional[ProficiencyLevel] = None
    due_at: Optional[datetime] = None


class GenerateCardsRequest(BaseModel):
    """Generate flashcards from a stored person or event."""
    type: GenerationTarget = Field(..., description="'person' or 'event'")
    person_id: Optional[int] = Field(None, description="Required when type is 'person'")
    event_id: Optional[int] = Field(None, description="Required when type is 'event'")

    class Config:
        json_schema_extra = {
            "example": {
                "type": "event",
                "event_id": 1
            }
        }


class CardDraft(BaseModel):
    """Question/answer pair returned by the model."""
    question: Optional[str] = ""
    answer: Optional[str] = ""


class GenerateCardsResponse(BaseModel):
    """Result of a generation run."""
    ok: bool = True
    created: int
    ids: List[int]
    token_usage: Optional[dict] = None
