"""
API v1 router aggregation.
"""
from fastapi import APIRouter
from timeline.api.v1.endpoints import (
    eras, events, persons, timeline, card_generation, cards
)

api_router = APIRouter()

# Note: Each router already defines its own prefix, so we don't add another one here
api_router.include_router(eras.router)
api_router.include_router(events.router)
api_router.include_router(persons.router)
api_router.include_router(timeline.router)
# card_generation before cards so POST /cards/generate is matched first
api_router.include_router(card_generation.router)
api_router.include_router(cards.router)
