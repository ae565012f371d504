import json
from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlmodel import select

from conftest import gemini_reply
from timeline.core.exceptions import GenerationError, NotFoundError, ValidationError
from timeline.models.enums import GenerationTarget, ProficiencyLevel
from timeline.models.models import Card
from timeline.schemas.card import GenerateCardsRequest
from timeline.services.card_generation_service import (
    build_event_context,
    build_person_context,
    expected_card_count,
    extract_card_drafts,
    format_child_lines,
    generate_cards,
)
from timeline.services.reconcile_service import SUBEVENTS, list_children

NOW = datetime(2024, 1, 15, 9, 0)


def test_child_lines_omit_missing_year_and_description(session, make_event):
    event = make_event(subevents=[("Bastille", 1789)])
    lines = format_child_lines(list_children(session, SUBEVENTS, event.id))
    assert lines == "1. Bastille (1789)"


def test_event_prompt_asks_for_three_plus_two_per_subevent(session, make_event):
    event = make_event(subevents=[("Bastille", 1789), ("Terror", 1793)], start_year=1789, end_year=1799)
    subevents = list_children(session, SUBEVENTS, event.id)
    prompt = build_event_context(event, subevents)

    assert expected_card_count(subevents) == 7
    assert "GENAU 7 Karten" in prompt
    assert "Zeitraum: 1789–1799" in prompt
    assert "1. Bastille (1789)\n2. Terror (1793)" in prompt


def test_person_prompt_without_achievements(make_person):
    person = make_person(born=1769, died=1821, bio="Französischer Kaiser")
    prompt = build_person_context(person, [])
    assert "GENAU 3 Karten" in prompt
    assert "Name: Napoleon Bonaparte" in prompt
    assert "Biografie: Französischer Kaiser" in prompt


def test_extract_drafts_accepts_object_or_list():
    assert len(extract_card_drafts({"cards": [{"question": "q", "answer": "a"}]})) == 1
    assert len(extract_card_drafts([{"question": "q", "answer": "a"}, "junk"])) == 1
    with pytest.raises(GenerationError):
        extract_card_drafts({"karten": []})


def test_generate_event_cards(session, make_event, mock_gemini):
    event = make_event(subevents=[("Bastille", 1789)])
    mock_gemini.return_value = gemini_reply(json.dumps({"cards": [
        {"question": " Wann fiel die Bastille? ", "answer": "1789"},
        {"question": "Wo?", "answer": "Paris"},
        {"question": "", "answer": "leer"},
        {"question": "Nur Frage", "answer": "   "},
    ]}))

    ids, usage = generate_cards(session, GenerateCardsRequest(type="event", event_id=event.id), now=NOW)

    assert len(ids) == 2
    cards = [session.get(Card, card_id) for card_id in ids]
    assert cards[0].question == "Wann fiel die Bastille?"
    assert all(card.event_id == event.id and card.person_id is None for card in cards)
    assert all(card.status == ProficiencyLevel.NEW and card.due_at == NOW for card in cards)
    assert usage["total_tokens"] == 200

    payload = mock_gemini.call_args.kwargs["json"]
    prompt = payload["contents"][0]["parts"][0]["text"]
    assert "GENAU 5 Karten" in prompt
    assert payload["generationConfig"]["responseMimeType"] == "application/json"


def test_generate_person_cards_from_fenced_reply(session, make_person, mock_gemini):
    person = make_person()
    mock_gemini.return_value = gemini_reply(
        '```json\n{"cards": [{"question": "Wer war Napoleon?", "answer": "Kaiser"}]}\n```'
    )
    ids, _ = generate_cards(session, GenerateCardsRequest(type=GenerationTarget.PERSON, person_id=person.id))
    assert session.get(Card, ids[0]).person_id == person.id


def test_generate_requires_target_id(session):
    with pytest.raises(ValidationError):
        generate_cards(session, GenerateCardsRequest(type="person"))


def test_generate_unknown_target(session, mock_gemini):
    with pytest.raises(NotFoundError):
        generate_cards(session, GenerateCardsRequest(type="event", event_id=99))
    mock_gemini.assert_not_called()


def test_generate_stores_nothing_on_bad_reply(session, make_event, mock_gemini):
    event = make_event()
    mock_gemini.return_value = gemini_reply("Ich kann das leider nicht.")
    with pytest.raises(GenerationError):
        generate_cards(session, GenerateCardsRequest(type="event", event_id=event.id))
    assert session.exec(select(Card)).all() == []


def test_child_lines_keep_year_zero():
    children = [SimpleNamespace(title="Zeitenwende", year=0, description=None)]
    assert format_child_lines(children) == "1. Zeitenwende (0)"
