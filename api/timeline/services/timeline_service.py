"""
Timeline service: events and persons together with their ordered child rows.
"""
# pyright: reportAttributeAccessIssue=false
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from timeline.core.exceptions import NotFoundError, PersistenceError
from timeline.models.card import Card
from timeline.models.era import Era
from timeline.models.event import Event, Subevent
from timeline.models.person import Person, PersonAchievement
from timeline.schemas.child import ChildContent
from timeline.services.reconcile_service import (
    ACHIEVEMENTS,
    SUBEVENTS,
    ReconcileOperation,
    list_children,
    parent_lock,
    reconcile_children,
)

logger = logging.getLogger(__name__)

EVENT_FIELDS = {"era_id", "title", "summary", "place", "start_year", "end_year", "image_url"}
PERSON_FIELDS = {"era_id", "name", "bio", "description", "born", "died", "image_url"}


@dataclass
class EventDetail:
    event: Event
    subevents: List[Subevent]
    operations: List[ReconcileOperation] = field(default_factory=list)


@dataclass
class PersonDetail:
    person: Person
    achievements: List[PersonAchievement]
    operations: List[ReconcileOperation] = field(default_factory=list)


def get_event(session: Session, event_id: int) -> Event:
    event = session.get(Event, event_id)
    if not event:
        raise NotFoundError(f"Event with id {event_id} not found")
    return event


def get_person(session: Session, person_id: int) -> Person:
    person = session.get(Person, person_id)
    if not person:
        raise NotFoundError(f"Person with id {person_id} not found")
    return person


def ensure_era_exists(session: Session, era_id: Optional[int]) -> None:
    if era_id is not None and not session.get(Era, era_id):
        raise NotFoundError(f"Era with id {era_id} not found")


def get_event_with_subevents(session: Session, event_id: int) -> EventDetail:
    event = get_event(session, event_id)
    return EventDetail(event=event, subevents=list_children(session, SUBEVENTS, event_id))


def get_person_with_achievements(session: Session, person_id: int) -> PersonDetail:
    person = get_person(session, person_id)
    return PersonDetail(person=person, achievements=list_children(session, ACHIEVEMENTS, person_id))


def _apply_fields(record: Any, data: Dict[str, Any], allowed: set) -> None:
    for key, value in data.items():
        if key in allowed:
            setattr(record, key, value)


def _commit(session: Session, what: str) -> None:
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to save {what}: {e}")
        raise PersistenceError(f"Failed to save {what}: {e}") from e


def _flush(session: Session, what: str) -> None:
    try:
        session.flush()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to save {what}: {e}")
        raise PersistenceError(f"Failed to save {what}: {e}") from e


def update_event_with_subevents(
    session: Session,
    event_id: int,
    event_data: Dict[str, Any],
    subevents: Optional[Sequence[ChildContent]],
) -> EventDetail:
    """
    Update an event's fields and reconcile its sub-events in one transaction.

    Passing `subevents=None` leaves the sub-events alone; an empty list deletes them all.
    """
    with parent_lock(SUBEVENTS, event_id):
        event = get_event(session, event_id)
        ensure_era_exists(session, event_data.get("era_id"))
        _apply_fields(event, event_data, EVENT_FIELDS)
        session.add(event)

        operations: List[ReconcileOperation] = []
        if subevents is not None:
            result = reconcile_children(session, SUBEVENTS, event_id, subevents, commit=False)
            operations = result.operations
        _commit(session, f"event {event_id}")

        session.refresh(event)
        logger.info(f"Updated event {event_id} ({len(operations)} sub-event operation(s))")
        return EventDetail(
            event=event,
            subevents=list_children(session, SUBEVENTS, event_id),
            operations=operations,
        )


def update_person_with_achievements(
    session: Session,
    person_id: int,
    person_data: Dict[str, Any],
    achievements: Optional[Sequence[ChildContent]],
) -> PersonDetail:
    """
    Update a person's fields and reconcile their achievements in one transaction.

    Passing `achievements=None` leaves the achievements alone.
    """
    with parent_lock(ACHIEVEMENTS, person_id):
        person = get_person(session, person_id)
        ensure_era_exists(session, person_data.get("era_id"))
        _apply_fields(person, person_data, PERSON_FIELDS)
        session.add(person)

        operations: List[ReconcileOperation] = []
        if achievements is not None:
            result = reconcile_children(session, ACHIEVEMENTS, person_id, achievements, commit=False)
            operations = result.operations
        _commit(session, f"person {person_id}")

        session.refresh(person)
        logger.info(f"Updated person {person_id} ({len(operations)} achievement operation(s))")
        return PersonDetail(
            person=person,
            achievements=list_children(session, ACHIEVEMENTS, person_id),
            operations=operations,
        )


def create_event(
    session: Session,
    event_data: Dict[str, Any],
    subevents: Sequence[ChildContent] = (),
) -> EventDetail:
    """Create an event and its initial sub-events in one transaction."""
    ensure_era_exists(session, event_data.get("era_id"))
    event = Event(**{k: v for k, v in event_data.items() if k in EVENT_FIELDS})
    session.add(event)
    _flush(session, "new event")

    operations: List[ReconcileOperation] = []
    with parent_lock(SUBEVENTS, event.id):
        if subevents:
            # Rolls back the new event too if a sub-event is rejected
            result = reconcile_children(session, SUBEVENTS, event.id, subevents, commit=False)
            operations = result.operations
        _commit(session, "new event")

        session.refresh(event)
        logger.info(f"Created event {event.id} ({len(operations)} sub-event operation(s))")
        return EventDetail(
            event=event,
            subevents=list_children(session, SUBEVENTS, event.id),
            operations=operations,
        )


def create_person(
    session: Session,
    person_data: Dict[str, Any],
    achievements: Sequence[ChildContent] = (),
) -> PersonDetail:
    """Create a person and their initial achievements in one transaction."""
    ensure_era_exists(session, person_data.get("era_id"))
    person = Person(**{k: v for k, v in person_data.items() if k in PERSON_FIELDS})
    session.add(person)
    _flush(session, "new person")

    operations: List[ReconcileOperation] = []
    with parent_lock(ACHIEVEMENTS, person.id):
        if achievements:
            result = reconcile_children(session, ACHIEVEMENTS, person.id, achievements, commit=False)
            operations = result.operations
        _commit(session, "new person")

        session.refresh(person)
        logger.info(f"Created person {person.id} ({len(operations)} achievement operation(s))")
        return PersonDetail(
            person=person,
            achievements=list_children(session, ACHIEVEMENTS, person.id),
            operations=operations,
        )


def list_events(session: Session) -> List[Event]:
    """Events oldest first; events without a start year last."""
    query = select(Event).order_by(Event.start_year.is_(None), Event.start_year, Event.id)  # type: ignore
    return list(session.exec(query).all())


def list_persons(session: Session) -> List[Person]:
    """Persons by birth year; unknown birth year last."""
    query = select(Person).order_by(Person.born.is_(None), Person.born, Person.id)  # type: ignore
    return list(session.exec(query).all())


def get_timeline(session: Session) -> Dict[str, Any]:
    """Everything the timeline page shows: eras, events with sub-events, persons with achievements."""
    eras = list(session.exec(select(Era).order_by(Era.start_year.is_(None), Era.start_year, Era.id)).all())  # type: ignore
    events = [
        EventDetail(event=event, subevents=list_children(session, SUBEVENTS, event.id))
        for event in list_events(session)
    ]
    persons = [
        PersonDetail(person=person, achievements=list_children(session, ACHIEVEMENTS, person.id))
        for person in list_persons(session)
    ]
    return {"eras": eras, "events": events, "persons": persons}


def _detach_cards(session: Session, column: str, value: int) -> int:
    """Unlink cards from a record that is about to be deleted; the cards themselves stay."""
    cards = session.exec(select(Card).where(getattr(Card, column) == value)).all()
    for card in cards:
        setattr(card, column, None)
        session.add(card)
    return len(cards)


def delete_event(session: Session, event_id: int) -> Optional[str]:
    """
    Delete an event and its sub-events. Cards generated from it are kept but unlinked.

    Returns:
        The deleted event's image URL, so the caller can remove the file
    """
    with parent_lock(SUBEVENTS, event_id):
        event = get_event(session, event_id)
        image_url = event.image_url
        detached = _detach_cards(session, "event_id", event_id)
        session.delete(event)
        _commit(session, f"deletion of event {event_id}")
        logger.info(f"Deleted event {event_id} (unlinked {detached} card(s))")
        return image_url


def delete_person(session: Session, person_id: int) -> Optional[str]:
    """Delete a person and their achievements; returns the image URL to clean up."""
    with parent_lock(ACHIEVEMENTS, person_id):
        person = get_person(session, person_id)
        image_url = person.image_url
        detached = _detach_cards(session, "person_id", person_id)
        session.delete(person)
        _commit(session, f"deletion of person {person_id}")
        logger.info(f"Deleted person {person_id} (unlinked {detached} card(s))")
        return image_url
