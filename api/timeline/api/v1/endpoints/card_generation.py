"""
Card generation endpoint.
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from timeline.core.database import get_session
from timeline.schemas.card import GenerateCardsRequest, GenerateCardsResponse
from timeline.services.card_generation_service import generate_cards

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cards", tags=["card-generation"])


@router.post("/generate", response_model=GenerateCardsResponse, status_code=status.HTTP_201_CREATED)
def generate_cards_for_record(
    request: GenerateCardsRequest,
    session: Session = Depends(get_session)
):
    """
    Generate flashcards for a person or an event using the LLM.

    Execution flow:
    1. Load the person (with achievements) or event (with sub-events)
    2. Build the prompt asking for 3 overview cards plus 2 per child item
    3. Call Gemini and parse the returned cards
    4. Store the non-blank cards as new and due immediately

    Declared without async: the Gemini call blocks, so it runs in the threadpool.
    """
    ids, token_usage = generate_cards(session, request)
    return GenerateCardsResponse(ok=True, created=len(ids), ids=ids, token_usage=token_usage)
