"""
Timeline page schema.
"""
from pydantic import BaseModel
from typing import List

from timeline.schemas.era import EraResponse
from timeline.schemas.event import EventWithSubeventsResponse
from timeline.schemas.person import PersonWithAchievementsResponse


class TimelineResponse(BaseModel):
    """Everything shown on the timeline page."""
    eras: List[EraResponse]
    events: List[EventWithSubeventsResponse]
    persons: List[PersonWithAchievementsResponse]
