"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest

from contentcraft.config import Settings
from contentcraft.storage.database import dispose_engines


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """Create a temporary data directory."""
    (tmp_path / "data").mkdir()
    return tmp_path / "data"


@pytest.fixture
def settings(tmp_data_dir: Path) -> Settings:
    """Create test settings with temporary paths and fake keys."""
    return Settings(
        openai_api_key="test-key-not-real",
        anthropic_api_key="test-key-not-real",
        tavily_api_key="test-key-not-real",
        appwrite_api_key="test-key-not-real",
        completion_base_url="https://llm.test/v1",
        model="gpt-3.5-turbo",
        max_tokens=1024,
        temperature=0.7,
        search_base_url="https://search.test",
        appwrite_endpoint="https://appwrite.test/v1",
        appwrite_project_id="proj",
        appwrite_database_id="db",
        appwrite_content_collection_id="contents",
        content_backend="sqlite",
        db_path=tmp_data_dir / "test.db",
    )


@pytest.fixture(autouse=True)
def _dispose_engines():
    yield
    dispose_engines()


def make_completion_response(
    text: str, prompt_tokens: int = 100, completion_tokens: int = 200
) -> dict:
    """Helper to create a chat-completions response body."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": text}, "finish_reason": "stop"}
        ],
        "usage": {"prompt_tokens": prompt_tokens, "completion_tokens": completion_tokens},
    }


def make_mock_response(text: str, input_tokens: int = 100, output_tokens: int = 200):
    """Helper to create a mock Anthropic API response."""
    mock_response = MagicMock()
    mock_response.content = [MagicMock(text=text)]
    mock_response.usage.input_tokens = input_tokens
    mock_response.usage.output_tokens = output_tokens
    return mock_response


class Recorder:
    """A MockTransport handler that replays canned replies and keeps every request."""

    def __init__(self, *replies: httpx.Response | dict | Exception) -> None:
        self.replies = list(replies)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return httpx.Response(200, json=reply)
        return reply

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


class FakeCompletion:
    """In-memory CompletionClient: replies are returned in order."""

    def __init__(self, *replies: str | Exception) -> None:
        self.replies = list(replies)
        self.calls: list[dict] = []
        self.closed = False

    async def generate(
        self,
        system: str,
        messages: list[dict],
        *,
        json_mode: bool = False,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        self.calls.append({"system": system, "messages": messages, "json_mode": json_mode})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def usage_summary(self) -> dict:
        return {"total_input_tokens": 0, "total_output_tokens": 0}

    async def aclose(self) -> None:
        self.closed = True


QUALITY_REPLY = json.dumps(
    {
        "contentScore": 82,
        "wordCount": 3,
        "readingTime": 9,
        "readability": 74,
        "tone": "informative",
        "keyInsights": ["Clear thesis"],
        "improvements": ["Add examples"],
    }
)

AUTHENTICITY_REPLY = json.dumps(
    {
        "aiScore": 130,
        "humanScore": -5,
        "analysis": "Uniform sentence length.",
        "humanizedVersion": "A looser take.",
    }
)
