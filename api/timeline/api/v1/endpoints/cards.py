"""
Cards endpoint: listing, reviewing and editing flashcards.
"""
# pyright: reportAttributeAccessIssue=false
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session, select

from timeline.core.database import get_session
from timeline.core.exceptions import ValidationError
from timeline.models.models import Card
from timeline.schemas.card import (
    CardResponse,
    CardsResponse,
    ReviewRequest,
    ReviewResponse,
    UpdateCardRequest,
)
from timeline.services.review_service import DatabaseCardStore, list_due_cards, record_review
from timeline.services.srs_service import DAYS_BY_LEVEL, coerce_level, to_naive_utc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cards", tags=["cards"])


def _cards_response(cards) -> CardsResponse:
    return CardsResponse(
        cards=[CardResponse.model_validate(card) for card in cards],
        count=len(cards),
    )


@router.get("", response_model=CardsResponse)
async def get_cards(
    person_id: Optional[int] = None,
    event_id: Optional[int] = None,
    session: Session = Depends(get_session)
):
    """Get all cards, optionally only those generated from one person or event."""
    query = select(Card)
    if person_id is not None:
        query = query.where(Card.person_id == person_id)
    if event_id is not None:
        query = query.where(Card.event_id == event_id)
    cards = session.exec(query.order_by(Card.id)).all()
    return _cards_response(list(cards))


@router.get("/due", response_model=CardsResponse)
async def get_due_cards(session: Session = Depends(get_session)):
    """Get the cards due now (never scheduled, or due date reached)."""
    return _cards_response(list_due_cards(session))


@router.post("/{card_id}/review", response_model=ReviewResponse)
async def review_card(
    card_id: int,
    request: ReviewRequest,
    session: Session = Depends(get_session)
):
    """Record a review: a correct answer moves the card up one level, a wrong one resets it."""
    previous = coerce_level(DatabaseCardStore(session).get_card(card_id).status)
    card = record_review(session, card_id, request.correct)
    level = coerce_level(card.status)
    return ReviewResponse(
        card=CardResponse.model_validate(card),
        previous_status=previous,
        interval_days=DAYS_BY_LEVEL[level],
    )


@router.patch("/{card_id}", response_model=CardResponse)
async def update_card(
    card_id: int,
    request: UpdateCardRequest,
    session: Session = Depends(get_session)
):
    """Edit a card's question and/or answer, or set its schedule directly."""
    store = DatabaseCardStore(session)
    if (request.status is None) != (request.due_at is None):
        raise ValidationError("status and due_at must be sent together")
    card = store.get_card(card_id)
    if request.question is not None or request.answer is not None:
        card = store.update_content(card_id, request.question, request.answer)
    if request.status is not None and request.due_at is not None:
        card = store.update_schedule(card_id, request.status, to_naive_utc(request.due_at))
    return CardResponse.model_validate(card)


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(card_id: int, session: Session = Depends(get_session)):
    """Delete a card."""
    DatabaseCardStore(session).delete_card(card_id)
    logger.info(f"Deleted card {card_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
