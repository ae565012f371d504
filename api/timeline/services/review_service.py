"""
Review session service.

A ReviewSession holds the in-memory pool of due cards for one review pass. It is
owned by the caller (the terminal client, a test, an endpoint) and talks to the
card collection only through a CardStore, so the same loop runs against the
database or against the HTTP API.
"""
# pyright: reportAttributeAccessIssue=false
import logging
import random
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Any

from sqlmodel import Session, select
from sqlalchemy import or_

from timeline.core.exceptions import NotFoundError, ValidationError
from timeline.models.card import Card
from timeline.models.enums import ProficiencyLevel
from timeline.services.srs_service import ScheduleResult, coerce_level, schedule, select_due_cards, utc_now

logger = logging.getLogger(__name__)


class CardStore(Protocol):
    """Persistence operations a review session needs."""

    def list_cards(self) -> List[Any]:
        ...

    def update_schedule(self, card_id: int, level: ProficiencyLevel, due_at: datetime) -> Any:
        ...

    def update_content(self, card_id: int, question: Optional[str], answer: Optional[str]) -> Any:
        ...

    def delete_card(self, card_id: int) -> None:
        ...


class DatabaseCardStore:
    """CardStore backed by the card table."""

    def __init__(self, session: Session):
        self.session = session

    def get_card(self, card_id: int) -> Card:
        card = self.session.get(Card, card_id)
        if not card:
            raise NotFoundError(f"Card with id {card_id} not found")
        return card

    def list_cards(self) -> List[Card]:
        return list(self.session.exec(select(Card).order_by(Card.id)).all())

    def update_schedule(self, card_id: int, level: ProficiencyLevel, due_at: datetime) -> Card:
        card = self.get_card(card_id)
        card.status = level
        card.due_at = due_at
        self.session.add(card)
        self.session.commit()
        self.session.refresh(card)
        return card

    def update_content(self, card_id: int, question: Optional[str], answer: Optional[str]) -> Card:
        card = self.get_card(card_id)
        if question is not None:
            if not question.strip():
                raise ValidationError("question must not be empty")
            card.question = question.strip()
        if answer is not None:
            if not answer.strip():
                raise ValidationError("answer must not be empty")
            card.answer = answer.strip()
        self.session.add(card)
        self.session.commit()
        self.session.refresh(card)
        return card

    def delete_card(self, card_id: int) -> None:
        card = self.get_card(card_id)
        self.session.delete(card)
        self.session.commit()


def list_due_cards(session: Session, now: Optional[datetime] = None) -> List[Card]:
    """Query the due set: cards never scheduled or due at or before `now`."""
    now = now or utc_now()
    query = select(Card).where(
        or_(Card.due_at.is_(None), Card.due_at <= now)  # type: ignore[union-attr]
    ).order_by(Card.id)
    return list(session.exec(query).all())


def record_review(session: Session, card_id: int, correct: bool, now: Optional[datetime] = None) -> Card:
    """Apply one review outcome to a stored card and persist the new schedule."""
    now = now or utc_now()
    store = DatabaseCardStore(session)
    card = store.get_card(card_id)
    previous = coerce_level(card.status)
    result = schedule(previous, correct, now)
    card = store.update_schedule(card_id, result.level, result.due_at)
    logger.info(
        f"Review card {card_id}: correct={correct}, status {previous.value} -> {result.level.value}, "
        f"due_at={result.due_at.isoformat()}"
    )
    return card


class ReviewSession:
    """
    One pass over the due cards.

    Every card in the pool is answered at most once: answering (correct or not)
    or deleting a card removes it from the pool. Cards are picked uniformly at
    random; pass an `rng` to make the order reproducible.
    """

    def __init__(
        self,
        store: CardStore,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.clock = clock
        self.rng = rng or random.Random()
        self._pool: Dict[int, Any] = {}
        self._current_id: Optional[int] = None

    def load(self) -> int:
        """Fetch all cards and keep the ones due now. Returns the pool size."""
        now = self.clock()
        due = select_due_cards(self.store.list_cards(), now)
        self._pool = {card.id: card for card in due}
        self._current_id = None
        logger.info(f"Review session loaded {len(self._pool)} due card(s) at {now.isoformat()}")
        return len(self._pool)

    @property
    def remaining(self) -> int:
        return len(self._pool)

    def cards(self) -> List[Any]:
        return list(self._pool.values())

    def next_card(self) -> Optional[Any]:
        """Return the current card, picking a random one from the pool if none is current."""
        if self._current_id is not None and self._current_id in self._pool:
            return self._pool[self._current_id]
        if not self._pool:
            self._current_id = None
            return None
        self._current_id = self.rng.choice(sorted(self._pool))
        return self._pool[self._current_id]

    def _require(self, card_id: int) -> Any:
        card = self._pool.get(card_id)
        if card is None:
            raise NotFoundError(f"Card {card_id} is not in the current review session")
        return card

    def _drop(self, card_id: int) -> None:
        self._pool.pop(card_id, None)
        if self._current_id == card_id:
            self._current_id = None

    def answer(self, card_id: int, correct: bool) -> ScheduleResult:
        """
        Record an answer for a card in the pool.

        The new schedule is persisted before the card leaves the pool; if the
        store fails, the error propagates and the card stays available.
        """
        card = self._require(card_id)
        result = schedule(getattr(card, "status", None), correct, self.clock())
        self.store.update_schedule(card_id, result.level, result.due_at)
        self._drop(card_id)
        logger.info(
            f"Answered card {card_id}: correct={correct} -> {result.level.value}, "
            f"{self.remaining} card(s) remaining"
        )
        return result

    def edit(self, card_id: int, question: Optional[str], answer: Optional[str]) -> Any:
        """Change a card's text; it stays in the pool."""
        self._require(card_id)
        updated = self.store.update_content(card_id, question, answer)
        self._pool[card_id] = updated
        return updated

    def delete(self, card_id: int) -> None:
        """Delete a card from the store and the pool."""
        self._require(card_id)
        self.store.delete_card(card_id)
        self._drop(card_id)
        logger.info(f"Deleted card {card_id}, {self.remaining} card(s) remaining")
