"""
Models package - imports all models so relationships resolve.
"""
# Import enums first
from timeline.models.enums import ProficiencyLevel, GenerationTarget

# Import all models
from timeline.models.era import Era
from timeline.models.event import Event, Subevent
from timeline.models.person import Person, PersonAchievement
from timeline.models.card import Card

__all__ = [
    'ProficiencyLevel',
    'GenerationTarget',
    'Era',
    'Event',
    'Subevent',
    'Person',
    'PersonAchievement',
    'Card',
]
