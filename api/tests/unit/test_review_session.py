import random
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from timeline.core.exceptions import NotFoundError, PersistenceError, ValidationError
from timeline.models.enums import ProficiencyLevel
from timeline.services.review_service import (
    DatabaseCardStore,
    ReviewSession,
    list_due_cards,
    record_review,
)

NOW = datetime(2024, 5, 1, 12, 0)


class MemoryCardStore:
    """In-memory CardStore that records what the session wrote."""

    def __init__(self, cards):
        self.cards = {card.id: card for card in cards}
        self.schedule_calls = []
        self.fail_updates = False

    def list_cards(self):
        return list(self.cards.values())

    def update_schedule(self, card_id, level, due_at):
        if self.fail_updates:
            raise PersistenceError("store unavailable")
        self.schedule_calls.append((card_id, level, due_at))
        card = self.cards[card_id]
        card.status, card.due_at = level, due_at
        return card

    def update_content(self, card_id, question, answer):
        card = self.cards[card_id]
        if question is not None:
            card.question = question
        if answer is not None:
            card.answer = answer
        return card

    def delete_card(self, card_id):
        del self.cards[card_id]


def card(card_id, status="new", due_at=None):
    return SimpleNamespace(id=card_id, question=f"Q{card_id}", answer=f"A{card_id}", status=status, due_at=due_at)


@pytest.fixture
def store():
    return MemoryCardStore([
        card(1),
        card(2, "two", NOW - timedelta(days=1)),
        card(3, "one", NOW + timedelta(days=2)),
        card(4, "six", NOW),
    ])


def make_session(store, seed=7):
    return ReviewSession(store, clock=lambda: NOW, rng=random.Random(seed))


def test_load_keeps_only_due_cards(store):
    session = make_session(store)
    assert session.load() == 3
    assert sorted(c.id for c in session.cards()) == [1, 2, 4]


def test_next_card_is_stable_until_answered(store):
    session = make_session(store)
    session.load()
    first = session.next_card()
    assert session.next_card() is first
    session.answer(first.id, True)
    assert session.remaining == 2
    assert session.next_card().id != first.id


def test_every_due_card_is_answered_once(store):
    session = make_session(store)
    session.load()
    answered = []
    while (current := session.next_card()) is not None:
        session.answer(current.id, True)
        answered.append(current.id)
    assert sorted(answered) == [1, 2, 4]
    assert session.next_card() is None


def test_answer_persists_the_new_schedule(store):
    session = make_session(store)
    session.load()
    result = session.answer(2, True)
    assert result.level == ProficiencyLevel.THREE
    assert result.due_at == NOW + timedelta(days=14)
    assert store.schedule_calls == [(2, ProficiencyLevel.THREE, NOW + timedelta(days=14))]


def test_wrong_answer_also_leaves_the_pool(store):
    session = make_session(store)
    session.load()
    result = session.answer(4, False)
    assert result.level == ProficiencyLevel.NEW
    assert result.due_at == NOW + timedelta(days=1)
    assert 4 not in [c.id for c in session.cards()]


def test_failed_write_keeps_card_in_pool(store):
    session = make_session(store)
    session.load()
    store.fail_updates = True
    with pytest.raises(PersistenceError):
        session.answer(1, True)
    assert session.remaining == 3


def test_unknown_card_is_rejected(store):
    session = make_session(store)
    session.load()
    with pytest.raises(NotFoundError):
        session.answer(3, True)  # not due, so not in the pool


def test_edit_keeps_card_and_delete_removes_it(store):
    session = make_session(store)
    session.load()
    session.edit(1, "Neue Frage", None)
    assert store.cards[1].question == "Neue Frage"
    assert session.remaining == 3

    session.delete(1)
    assert 1 not in store.cards
    assert session.remaining == 2


def test_same_seed_gives_same_order(store):
    def order(seed):
        session = make_session(MemoryCardStore(store.list_cards()), seed)
        session.load()
        ids = []
        while (current := session.next_card()) is not None:
            session.delete(current.id)
            ids.append(current.id)
        return ids

    assert order(3) == order(3)


def test_database_store_round_trip(session, make_card):
    due = make_card(question="Wer?", answer="Robespierre", due_at=NOW - timedelta(hours=1))
    make_card(question="Später", answer="x", due_at=NOW + timedelta(days=3))

    review = ReviewSession(DatabaseCardStore(session), clock=lambda: NOW, rng=random.Random(1))
    assert review.load() == 1
    review.answer(due.id, True)

    stored = DatabaseCardStore(session).get_card(due.id)
    assert stored.status == ProficiencyLevel.ONE
    assert stored.due_at == NOW + timedelta(days=3)


def test_list_due_cards_query(session, make_card):
    never = make_card(question="a", answer="a")
    past = make_card(question="b", answer="b", due_at=NOW - timedelta(days=1))
    make_card(question="c", answer="c", due_at=NOW + timedelta(minutes=1))
    assert [c.id for c in list_due_cards(session, NOW)] == [never.id, past.id]


def test_record_review_treats_unknown_status_as_new(session, make_card):
    stored = make_card(status="corrupted")
    updated = record_review(session, stored.id, True, NOW)
    assert updated.status == ProficiencyLevel.ONE
    assert updated.due_at == NOW + timedelta(days=3)


def test_database_store_rejects_blank_content(session, make_card):
    stored = make_card()
    with pytest.raises(ValidationError):
        DatabaseCardStore(session).update_content(stored.id, "   ", None)


def test_database_store_missing_card(session):
    with pytest.raises(NotFoundError):
        DatabaseCardStore(session).delete_card(999)
