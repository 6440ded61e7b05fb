"""Shared test fixtures: fake OpenAI client, fake OCR workers, app client."""

from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient

import config
from main import create_app

ANALYSIS_REPLY = {
    "summary": "A grocery receipt from a corner shop.",
    "keyPoints": ["Milk was purchased", "Total was 4.50"],
    "sentiment": "neutral",
    "topics": ["shopping", "receipt"],
    "language": "English",
    "confidence": "High",
}


def completion(content: str) -> SimpleNamespace:
    """Shape of ``client.chat.completions.create`` return value."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeOpenAI:
    """Records requests and replies with queued contents."""

    def __init__(self, *replies: Any):
        self.replies = list(replies)
        self.calls: list[dict[str, Any]] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return completion(reply)


class FakeWorker:
    def __init__(self, text: str = "", error: BaseException | None = None):
        self.text = text
        self.error = error
        self.recognized: list[str] = []
        self.terminate_calls = 0

    def recognize(self, image_path: str) -> str:
        self.recognized.append(image_path)
        if self.error is not None:
            raise self.error
        return self.text

    def terminate(self) -> None:
        self.terminate_calls += 1


@pytest.fixture
def analysis_reply() -> dict[str, Any]:
    return dict(ANALYSIS_REPLY)


@pytest.fixture
def analysis_context() -> dict[str, Any]:
    """Context as /upload returns it."""
    return {
        "textExtraction": {
            "raw": "MILK 1.50\nBREAD 3.00\nTOTAL 4.50",
            "wordCount": 6,
            "characterCount": 31,
        },
        "analysis": {**ANALYSIS_REPLY, "timestamp": "2024-05-01T12:00:00.000Z"},
    }


@pytest.fixture
def uploads_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def make_client(uploads_dir, tmp_path):
    """Build a TestClient around an app with injected fakes."""

    def _make(llm: FakeOpenAI | None = None, worker: FakeWorker | None = None) -> TestClient:
        app = create_app(
            llm_client=llm or FakeOpenAI(),
            ocr_worker_factory=lambda: worker or FakeWorker("hello"),
            uploads_dir=str(uploads_dir),
            public_dir=str(tmp_path / "no-public"),
        )
        return TestClient(app)

    return _make


@pytest.fixture(autouse=True)
def api_key(monkeypatch):
    monkeypatch.setattr(config, "OPENAI_API_KEY", "sk-test-key")
