"""Test configuration and fixtures."""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from text_analysis.config import ServiceConfig
from text_analysis.scoring import Metrics, ScoringClient
from text_analysis.view import ClientView

BASE_URL = "http://scoring.test"

TOXICITY_BODY = {
    "text": "hello there",
    "predicted_class": "Neutral",
    "score": 0.12,
    "probabilities": {"Neutral": 0.88, "Toxic": 0.12},
}
EDU_SCORE_BODY = {"text": "hello there", "score": 2.3456, "int_score": 2}
LOGS_BODY = [
    {"id": 1, "text": "first", "result_type": "Toxicity", "score": 0.8},
    {"id": 2, "text": "first", "result_type": "Education", "score": 5},
    {"id": 3, "text": "second", "result_type": "Toxicity", "score": None},
]

Handler = Callable[[httpx.Request], Any]


class FakeScoringService:
    """In-process stand-in for the remote scoring service.

    Each route answers with a canned response unless overridden in
    ``handlers``. Every request is recorded in ``calls`` as ``(method, path)``.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str]] = []
        self.bodies: List[Optional[Dict[str, Any]]] = []
        self.logs = list(LOGS_BODY)
        self.handlers: Dict[Tuple[str, str], Handler] = {
            ("POST", "/toxicity"): lambda request: httpx.Response(200, json=TOXICITY_BODY),
            ("POST", "/edu-score"): lambda request: httpx.Response(200, json=EDU_SCORE_BODY),
            ("GET", "/logs"): lambda request: httpx.Response(200, json=self.logs),
            ("DELETE", "/clear-logs"): self._clear,
        }

    def _clear(self, request: httpx.Request) -> httpx.Response:
        self.logs = []
        return httpx.Response(200, json={"message": "Logs cleared"})

    def fail(self, method: str, path: str, status_code: int = 500) -> None:
        self.handlers[(method, path)] = lambda request: httpx.Response(status_code, text="Internal Server Error")

    def unreachable(self, method: str, path: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        self.handlers[(method, path)] = handler

    def count(self, method: str, path: str) -> int:
        return self.calls.count((method, path))

    async def handle(self, request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path)
        self.calls.append(key)
        self.bodies.append(json.loads(request.content) if request.content else None)
        response = self.handlers[key](request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def service() -> FakeScoringService:
    """Provide a fresh fake scoring service."""
    return FakeScoringService()


@pytest.fixture
def config() -> ServiceConfig:
    return ServiceConfig(base_url=BASE_URL, timeout_seconds=5.0, connect_timeout_seconds=1.0)


@pytest.fixture
def client(service: FakeScoringService, config: ServiceConfig) -> ScoringClient:
    """Provide a scoring client wired to the fake service."""
    return ScoringClient(config, Metrics(config=config), transport=service.transport())


@pytest.fixture
def view(client: ScoringClient) -> ClientView:
    return ClientView(client)
