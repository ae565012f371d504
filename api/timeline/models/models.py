"""
Models module - re-exports all table models.

Importing this module registers every table with SQLModel metadata.
"""
from timeline.models.enums import ProficiencyLevel, GenerationTarget
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
