"""
SRS (Spaced Repetition System) service implementing a fixed-table streak scheduler.

A card's status counts consecutive correct reviews (new, one, ..., six). A correct
answer moves it exactly one level up (saturating at six), an incorrect answer resets
it to new. The next due date is a fixed number of calendar days after the review.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, TypeVar, Union

from timeline.models.enums import ProficiencyLevel

logger = logging.getLogger(__name__)


# Review order; index + 1 is the number of consecutive correct answers needed to leave a level
PROFICIENCY_ORDER: List[ProficiencyLevel] = [
    ProficiencyLevel.NEW,
    ProficiencyLevel.ONE,
    ProficiencyLevel.TWO,
    ProficiencyLevel.THREE,
    ProficiencyLevel.FOUR,
    ProficiencyLevel.FIVE,
    ProficiencyLevel.SIX,
]

# Days until the next review once a card has reached a level
DAYS_BY_LEVEL = {
    ProficiencyLevel.NEW: 1,
    ProficiencyLevel.ONE: 3,
    ProficiencyLevel.TWO: 7,
    ProficiencyLevel.THREE: 14,
    ProficiencyLevel.FOUR: 30,
    ProficiencyLevel.FIVE: 100,
    ProficiencyLevel.SIX: 365,
}


@dataclass(frozen=True)
class ScheduleResult:
    """Outcome of scheduling one review."""
    level: ProficiencyLevel
    due_at: datetime


T = TypeVar("T")


def utc_now() -> datetime:
    """Current time as naive UTC, the convention used for stored timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def coerce_level(value: Union[ProficiencyLevel, str, None]) -> ProficiencyLevel:
    """
    Convert a stored status to a ProficiencyLevel.

    Missing or unknown values count as NEW, so a card with a corrupt status
    restarts its streak instead of failing the review.
    """
    if value is None:
        return ProficiencyLevel.NEW
    if isinstance(value, ProficiencyLevel):
        return value
    try:
        return ProficiencyLevel(str(value).strip().lower())
    except ValueError:
        logger.warning(f"Unknown proficiency level {value!r}, treating as new")
        return ProficiencyLevel.NEW


def next_level(current: Union[ProficiencyLevel, str, None], correct: bool) -> ProficiencyLevel:
    """
    Compute the level after a review.

    Args:
        current: Current level (None or unknown counts as new)
        correct: Whether the reviewer answered correctly

    Returns:
        NEW on an incorrect answer, otherwise the following level (SIX stays SIX)
    """
    if not correct:
        return ProficiencyLevel.NEW

    index = PROFICIENCY_ORDER.index(coerce_level(current))
    return PROFICIENCY_ORDER[min(index + 1, len(PROFICIENCY_ORDER) - 1)]


def calculate_next_due_at(level: Union[ProficiencyLevel, str], now: datetime) -> datetime:
    """
    Calculate the next due date for a card that has just reached `level`.

    Adds whole calendar days: the time of day of `now` is kept in whatever
    timezone `now` carries (naive datetimes are treated as UTC by callers).
    """
    return now + timedelta(days=DAYS_BY_LEVEL[coerce_level(level)])


def schedule(
    current: Union[ProficiencyLevel, str, None],
    correct: bool,
    now: datetime,
) -> ScheduleResult:
    """Pure scheduling step: (current level, outcome, now) -> (next level, next due date)."""
    level = next_level(current, correct)
    return ScheduleResult(level=level, due_at=calculate_next_due_at(level, now))


def is_due(due_at: Optional[datetime], now: datetime) -> bool:
    """A card is due if it has never been scheduled or its due date has passed."""
    if due_at is None:
        return True
    return to_naive_utc(due_at) <= to_naive_utc(now)


def select_due_cards(cards: Iterable[T], now: datetime) -> List[T]:
    """Filter cards (anything with a `due_at` attribute) down to the due set, keeping order."""
    return [card for card in cards if is_due(getattr(card, "due_at", None), now)]
