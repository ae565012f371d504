"""
HTTP client for the timeline API.

TimelineApiClient implements the CardStore operations over the REST API, so a
ReviewSession can run on a machine that only talks to the server.
"""
import logging
from datetime import datetime
from typing import Any, List, Optional

import requests

from timeline.core.exceptions import (
    NotFoundError,
    PersistenceError,
    TimelineException,
    ValidationError,
)
from timeline.models.enums import ProficiencyLevel
from timeline.schemas.card import CardResponse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api/v1"


class TimelineApiClient:
    """CardStore backed by the `/cards` endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise PersistenceError(f"Request to {url} failed: {e}") from e

        if response.status_code >= 400:
            raise self._error_for(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_for(response: requests.Response) -> TimelineException:
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        message = f"HTTP {response.status_code}: {detail}"
        if response.status_code == 404:
            return NotFoundError(message)
        if response.status_code in (400, 422):
            return ValidationError(message)
        return PersistenceError(message)

    def list_cards(self) -> List[CardResponse]:
        data = self._request("GET", "/cards")
        return [CardResponse.model_validate(card) for card in data["cards"]]

    def list_due_cards(self) -> List[CardResponse]:
        data = self._request("GET", "/cards/due")
        return [CardResponse.model_validate(card) for card in data["cards"]]

    def update_schedule(self, card_id: int, level: ProficiencyLevel, due_at: datetime) -> CardResponse:
        payload = {"status": ProficiencyLevel(level).value, "due_at": due_at.isoformat()}
        data = self._request("PATCH", f"/cards/{card_id}", json=payload)
        return CardResponse.model_validate(data)

    def update_content(self, card_id: int, question: Optional[str], answer: Optional[str]) -> CardResponse:
        payload = {}
        if question is not None:
            payload["question"] = question
        if answer is not None:
            payload["answer"] = answer
        data = self._request("PATCH", f"/cards/{card_id}", json=payload)
        return CardResponse.model_validate(data)

    def delete_card(self, card_id: int) -> None:
        self._request("DELETE", f"/cards/{card_id}")
