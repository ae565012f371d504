"""
Model enums.
"""
from enum import Enum


class ProficiencyLevel(str, Enum):
    """Consecutive-correct streak of a flashcard, capped at SIX."""
    NEW = "new"
    ONE = "one"
    TWO = "two"
    THREE = "three"
    FOUR = "four"
    FIVE = "five"
    SIX = "six"


class GenerationTarget(str, Enum):
    """Kind of record flashcards are generated from."""
    PERSON = "person"
    EVENT = "event"
