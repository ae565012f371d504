"""
Timeline endpoint.
"""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from timeline.api.v1.endpoints.events import event_detail_response
from timeline.api.v1.endpoints.persons import person_detail_response
from timeline.core.database import get_session
from timeline.schemas.era import EraResponse
from timeline.schemas.timeline import TimelineResponse
from timeline.services.timeline_service import get_timeline

router = APIRouter(prefix="/timeline", tags=["timeline"])


@router.get("", response_model=TimelineResponse)
async def get_timeline_page(session: Session = Depends(get_session)):
    """Eras, events with sub-events and persons with achievements, in chronological order."""
    data = get_timeline(session)
    return TimelineResponse(
        eras=[EraResponse.model_validate(era) for era in data["eras"]],
        events=[event_detail_response(detail) for detail in data["events"]],
        persons=[person_detail_response(detail) for detail in data["persons"]],
    )
