"""
Flashcard generation from stored persons and events via Gemini.
"""
# pyright: reportAttributeAccessIssue=false
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from timeline.core.exceptions import GenerationError, PersistenceError, ValidationError
from timeline.models.card import Card
from timeline.models.enums import GenerationTarget, ProficiencyLevel
from timeline.models.event import Event
from timeline.models.person import Person
from timeline.schemas.card import CardDraft, GenerateCardsRequest
from timeline.services.llm_service import call_gemini_api
from timeline.services.reconcile_service import ACHIEVEMENTS, SUBEVENTS, list_children
from timeline.services.srs_service import utc_now
from timeline.services.timeline_service import get_event, get_person

logger = logging.getLogger(__name__)

BASE_CARDS = 3
CARDS_PER_CHILD = 2

CARDS_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "cards": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {"type": "STRING"},
                    "answer": {"type": "STRING"},
                },
                "required": ["question", "answer"],
            },
        },
    },
    "required": ["cards"],
}

GENERATION_INSTRUCTION = (
    "Erstelle Lernkarten (Frage/Antwort) für ein Spaced-Repetition-System.\n"
    "Regeln: kurze, eindeutige Faktenfragen; keine Trickfragen; keine Duplikate; "
    "nur Informationen verwenden, die im CONTEXT stehen.\n"
    'Antworte AUSSCHLIESSLICH mit gültigem JSON im Schema {"cards":[{"question":"...","answer":"..."}]} '
    "ohne erklärenden Text.\n\n"
    "CONTEXT:\n"
)


def _value(value) -> str:
    return "" if value is None else str(value)


def format_child_lines(children: Sequence) -> str:
    """Numbered child list: '1. Title (1789): description', year and description only when set."""
    lines = []
    for idx, child in enumerate(children, 1):
        line = f"{idx}. {child.title}"
        if child.year is not None:
            line += f" ({child.year})"
        if child.description:
            line += f": {child.description}"
        lines.append(line)
    return "\n".join(lines)


def expected_card_count(children: Sequence) -> int:
    return BASE_CARDS + CARDS_PER_CHILD * len(children)


def build_person_context(person: Person, achievements: Sequence) -> str:
    total = expected_card_count(achievements)
    return f"""
SYSTEM / AUFGABE:
Du bist ein Lernkarten-Generator. Gib als Ausgabe ausschließlich ein JSON-Array "cards" zurück.
Jedes Element hat exakt: {{ "question": string, "answer": string }}.
Keine zusätzlichen Felder, kein Fließtext.

WICHTIGE REGELN ZUR ANZAHL:
- Erstelle GENAU {total} Karten.
- Davon GENAU {BASE_CARDS} Karten zur PERSON insgesamt (übergreifend, nicht auf einzelne Achievements beschränkt).
- Für JEDES Achievement GENAU {CARDS_PER_CHILD} Karten, die sich klar auf dieses Achievement beziehen.

VARIATION (Achievements):
- Die {CARDS_PER_CHILD} Karten pro Achievement müssen unterschiedliche Blickwinkel haben
  (z.B. Handlung/Entscheidung, Bedeutung/Wirkung, Herausforderung, Lernen/Folge).
- Keine nahezu identischen Fragen innerhalb desselben Achievements.

INHALTLICHE QUALITÄT:
- Fragen kurz, konkret, verständlich.
- Antworten präzise und nur aus dem Kontext ableitbar.
- Keine erfundenen Fakten.
- Sprache: Deutsch.

KONTEXT:
TYPE: PERSON
Name: {person.name}
Geburtsjahr: {_value(person.born)}
Sterbejahr: {_value(person.died)}
Biografie: {_value(person.bio)}

ACHIEVEMENTS (in Reihenfolge, je {CARDS_PER_CHILD} Karten):
{format_child_lines(achievements)}
""".strip()


def build_event_context(event: Event, subevents: Sequence) -> str:
    total = expected_card_count(subevents)
    period = _value(event.start_year)
    if event.end_year:
        period += f"–{event.end_year}"
    return f"""
SYSTEM / AUFGABE:
Du bist ein Lernkarten-Generator. Gib als Ausgabe ausschließlich ein JSON-Array "cards" zurück.
Jedes Element hat exakt: {{ "question": string, "answer": string }}.
Keine zusätzlichen Felder, kein Fließtext.

WICHTIGE REGELN ZUR ANZAHL:
- Erstelle GENAU {total} Karten.
- Davon GENAU {BASE_CARDS} Karten zum HAUPTEVENT.
- Für JEDES Subevent GENAU {CARDS_PER_CHILD} Karten nur zu diesem Subevent.

INHALTLICHE QUALITÄT:
- Fragen kurz, konkret, verständlich.
- Antworten präzise, nur aus dem Kontext ableitbar; keine erfundenen Fakten.
- Sprache: Deutsch.

KONTEXT:
TYPE: EVENT
Titel: {event.title}
Zeitraum: {period}
Ort: {_value(event.place)}
Beschreibung: {_value(event.summary)}

SUBEVENTS (in Reihenfolge, je {CARDS_PER_CHILD} Karten):
{format_child_lines(subevents)}
""".strip()


def extract_card_drafts(llm_data) -> List[CardDraft]:
    """Pull question/answer pairs out of the model's JSON ({"cards": [...]} or a bare list)."""
    raw_cards = llm_data.get("cards") if isinstance(llm_data, dict) else llm_data
    if not isinstance(raw_cards, list):
        raise GenerationError("Gemini API: response has no 'cards' array")

    drafts = []
    for raw in raw_cards:
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring non-object card in LLM output: {raw!r}")
            continue
        drafts.append(CardDraft(
            question=_value(raw.get("question")),
            answer=_value(raw.get("answer")),
        ))
    return drafts


def build_context(session: Session, request: GenerateCardsRequest) -> Tuple[str, dict]:
    """Resolve the generation target and return (context prompt, card link fields)."""
    if request.type == GenerationTarget.PERSON:
        if request.person_id is None:
            raise ValidationError("person_id is required for type 'person'")
        person = get_person(session, request.person_id)
        if not (person.name or "").strip():
            raise ValidationError("person.name is required")
        achievements = list_children(session, ACHIEVEMENTS, person.id)
        return build_person_context(person, achievements), {"person_id": person.id}

    if request.type == GenerationTarget.EVENT:
        if request.event_id is None:
            raise ValidationError("event_id is required for type 'event'")
        event = get_event(session, request.event_id)
        if not (event.title or "").strip():
            raise ValidationError("event.title is required")
        subevents = list_children(session, SUBEVENTS, event.id)
        return build_event_context(event, subevents), {"event_id": event.id}

    raise ValidationError(f"Unknown generation type: {request.type}")


def generate_cards(
    session: Session,
    request: GenerateCardsRequest,
    now: Optional[datetime] = None,
) -> Tuple[List[int], dict]:
    """
    Generate flashcards for a person or event and store them as new, immediately due cards.

    Returns:
        Tuple of (created card ids, token usage)
    """
    context, link = build_context(session, request)
    logger.info(f"Generating cards for {request.type.value} {link}")

    llm_data, token_usage = call_gemini_api(
        GENERATION_INSTRUCTION + context,
        response_schema=CARDS_RESPONSE_SCHEMA,
    )
    drafts = extract_card_drafts(llm_data)

    due_at = now or utc_now()
    created: List[Card] = []
    for draft in drafts:
        question = (draft.question or "").strip()
        answer = (draft.answer or "").strip()
        if not question or not answer:
            continue
        card = Card(
            question=question,
            answer=answer,
            status=ProficiencyLevel.NEW,
            due_at=due_at,
            **link,
        )
        session.add(card)
        created.append(card)

    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to store generated cards for {link}: {e}")
        raise PersistenceError(f"Failed to store generated cards: {e}") from e

    ids = [card.id for card in created]
    logger.info(f"Generated {len(drafts)} card(s), stored {len(ids)} for {link}")
    return ids, token_usage
