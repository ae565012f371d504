import os
import tempfile
from unittest.mock import MagicMock

import pytest

# Configure the app before anything imports timeline.core.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GOOGLE_GEMINI_API_KEY"] = "test-key"
os.environ["ASSETS_PATH"] = tempfile.mkdtemp(prefix="timeline-assets-")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from timeline.core.database import engine, get_session  # noqa: E402
from timeline.models.models import (  # noqa: E402
    Card,
    Era,
    Event,
    Person,
    PersonAchievement,
    ProficiencyLevel,
    Subevent,
)


@pytest.fixture
def session():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as db_session:
        yield db_session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def client(session):
    from timeline.main import app

    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_event(session):
    def _make(title="Französische Revolution", subevents=(), **fields):
        event = Event(title=title, **fields)
        session.add(event)
        session.commit()
        session.refresh(event)
        for sub_title, year in subevents:
            session.add(Subevent(event_id=event.id, title=sub_title, year=year))
        session.commit()
        return event
    return _make


@pytest.fixture
def make_person(session):
    def _make(name="Napoleon Bonaparte", achievements=(), **fields):
        person = Person(name=name, **fields)
        session.add(person)
        session.commit()
        session.refresh(person)
        for title, year in achievements:
            session.add(PersonAchievement(person_id=person.id, title=title, year=year))
        session.commit()
        return person
    return _make


@pytest.fixture
def make_era(session):
    def _make(name="Neuzeit", **fields):
        era = Era(name=name, **fields)
        session.add(era)
        session.commit()
        session.refresh(era)
        return era
    return _make


@pytest.fixture
def make_card(session):
    def _make(question="Wann begann die Revolution?", answer="1789",
              status=ProficiencyLevel.NEW, due_at=None, **fields):
        card = Card(question=question, answer=answer, status=status, due_at=due_at, **fields)
        session.add(card)
        session.commit()
        session.refresh(card)
        return card
    return _make


def gemini_reply(text, prompt_tokens=120, output_tokens=80):
    """A fake requests.Response carrying a Gemini generateContent reply."""
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = {
        "candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}],
        "usageMetadata": {
            "promptTokenCount": prompt_tokens,
            "candidatesTokenCount": output_tokens,
            "totalTokenCount": prompt_tokens + output_tokens,
        },
    }
    return response


@pytest.fixture
def mock_gemini(monkeypatch):
    """Patch the Gemini HTTP call; set `.return_value` to a gemini_reply(...)."""
    post = MagicMock(return_value=gemini_reply('{"cards": []}'))
    monkeypatch.setattr("timeline.services.llm_service.requests.post", post)
    return post
