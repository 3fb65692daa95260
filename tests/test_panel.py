"""Tests for the analysis panel state machine and its background saves."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from contentcraft.analysis.base import AnalysisRequest, FeatureKind
from contentcraft.analysis.pipeline import AnalysisPipeline
from contentcraft.analysis.results import QualityResult, RephraseResult
from contentcraft.backend.account import UserSession
from contentcraft.backend.appwrite import AppwriteHTTP
from contentcraft.backend.documents import AppwriteContentStore
from contentcraft.config import Settings
from contentcraft.errors import (
    GENERIC_FAILURE_MESSAGE,
    INCOMPLETE_CONTENT_MESSAGE,
    UpstreamError,
)
from contentcraft.llm.client import ChatCompletionClient
from contentcraft.panel import MAX_PERSIST_ERRORS, AnalysisPanel, PanelState
from contentcraft.persistence import PersistenceAdapter, SessionContext
from contentcraft.search.client import SearchClient
from tests.conftest import QUALITY_REPLY, FakeCompletion, Recorder

DRAFT = "The quick brown fox jumps over the lazy dog."


class GatedPipeline:
    """Pipeline whose replies are released by the test, one gate per call."""

    def __init__(self) -> None:
        self.gates: list[asyncio.Event] = []
        self.requests: list[AnalysisRequest] = []

    async def run(self, request: AnalysisRequest) -> RephraseResult:
        gate = asyncio.Event()
        self.gates.append(gate)
        self.requests.append(request)
        await gate.wait()
        return RephraseResult(text=f"reply to {request.input_text}")


def _session() -> SessionContext:
    return SessionContext(session=UserSession(token="secret", user_id="user-1"))


def _appwrite(settings: Settings, recorder: Recorder) -> PersistenceAdapter:
    http = AppwriteHTTP(settings, transport=recorder.transport)
    return PersistenceAdapter(AppwriteContentStore(http, settings))


@pytest.mark.asyncio
async def test_empty_input_makes_no_call() -> None:
    completion = FakeCompletion(QUALITY_REPLY)
    panel = AnalysisPanel(AnalysisPipeline(completion), FeatureKind.QUALITY_ANALYSIS)

    state = await panel.trigger("   ")

    assert state == PanelState.IDLE
    assert completion.calls == []
    assert panel.result is None


@pytest.mark.asyncio
async def test_success_sets_result_and_metrics() -> None:
    panel = AnalysisPanel(
        AnalysisPipeline(FakeCompletion(QUALITY_REPLY)), FeatureKind.QUALITY_ANALYSIS
    )

    state = await panel.trigger(DRAFT)

    assert state == PanelState.SUCCESS
    assert isinstance(panel.result, QualityResult)
    assert panel.error is None
    assert panel.word_count == 9
    assert panel.reading_time == 1


@pytest.mark.asyncio
async def test_invalid_json_shows_incomplete_message() -> None:
    panel = AnalysisPanel(
        AnalysisPipeline(FakeCompletion("not valid json")), FeatureKind.QUALITY_ANALYSIS
    )

    state = await panel.trigger(DRAFT)

    assert state == PanelState.ERROR
    assert panel.error == INCOMPLETE_CONTENT_MESSAGE
    assert panel.result is None


@pytest.mark.asyncio
async def test_upstream_failure_shows_generic_message(settings: Settings) -> None:
    recorder = Recorder(httpx.Response(500, json={"error": "boom"}))
    pipeline = AnalysisPipeline(ChatCompletionClient(settings, transport=recorder.transport))
    panel = AnalysisPanel(pipeline, FeatureKind.AUTHENTICITY_CHECK)

    state = await panel.trigger(DRAFT)

    assert state == PanelState.ERROR
    assert panel.error == GENERIC_FAILURE_MESSAGE
    assert panel.result is None
    assert len(recorder.requests) == 1
    await pipeline.aclose()


@pytest.mark.asyncio
async def test_error_clears_on_next_trigger() -> None:
    completion = FakeCompletion(UpstreamError("down"), "Better text.")
    panel = AnalysisPanel(AnalysisPipeline(completion), FeatureKind.REPHRASE)

    assert await panel.trigger("first") == PanelState.ERROR
    assert await panel.trigger("second") == PanelState.SUCCESS
    assert panel.error is None
    assert panel.result == RephraseResult(text="Better text.")


@pytest.mark.asyncio
async def test_retrigger_drops_stale_reply() -> None:
    pipeline = GatedPipeline()
    panel = AnalysisPanel(pipeline, FeatureKind.REPHRASE)

    first = asyncio.create_task(panel.trigger("first"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    second = asyncio.create_task(panel.trigger("second"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert panel.state == PanelState.LOADING

    pipeline.gates[-1].set()
    await second
    await first

    assert panel.state == PanelState.SUCCESS
    assert panel.result == RephraseResult(text="reply to second")


@pytest.mark.asyncio
async def test_first_save_creates_then_patches(settings: Settings) -> None:
    recorder = Recorder({"$id": "doc-1"}, {"$id": "doc-1"})
    context = _session()
    panel = AnalysisPanel(
        AnalysisPipeline(FakeCompletion(QUALITY_REPLY)),
        FeatureKind.QUALITY_ANALYSIS,
        persistence=_appwrite(settings, recorder),
        context=context,
    )

    await panel.trigger(DRAFT)
    await panel.drain()
    await panel.trigger(DRAFT + " Again.")
    await panel.drain()

    assert [r.method for r in recorder.requests] == ["POST", "PATCH"]
    assert recorder.requests[0].url.path == "/v1/databases/db/collections/contents/documents"
    assert recorder.requests[1].url.path.endswith("/documents/doc-1")
    assert recorder.requests[0].headers["x-appwrite-project"] == "proj"

    created = recorder.body(0)["data"]
    assert created["userId"] == "user-1"
    assert created["mode"] == "quality-analysis"
    assert created["contentScore"] == 82
    assert created["wordCount"] == 9
    assert "createdAt" not in recorder.body(1)["data"]
    assert panel.document_id == "doc-1"
    assert panel.persist_errors == []


@pytest.mark.asyncio
async def test_search_after_quality_leaves_the_draft_alone(settings: Settings) -> None:
    recorder = Recorder({"$id": "doc-1"}, {"$id": "doc-1"})
    search = Recorder(
        {"answer": "Bees need forage.", "results": [{"title": "B", "url": "https://b.test"}]}
    )
    adapter = _appwrite(settings, recorder)
    context = _session()
    quality = AnalysisPanel(
        AnalysisPipeline(FakeCompletion(QUALITY_REPLY)),
        FeatureKind.QUALITY_ANALYSIS,
        persistence=adapter,
        context=context,
    )
    knowledge = AnalysisPanel(
        AnalysisPipeline(
            FakeCompletion("unused"), SearchClient(settings, transport=search.transport)
        ),
        FeatureKind.KNOWLEDGE_SEARCH,
        persistence=adapter,
        context=context,
    )

    await quality.trigger(DRAFT)
    await quality.drain()
    assert await knowledge.trigger("Urban beekeeping") == PanelState.SUCCESS
    await knowledge.drain()

    assert [r.method for r in recorder.requests] == ["POST", "PATCH"]
    patched = recorder.body(1)["data"]
    assert set(patched) == {"summary", "relatedLinks", "updatedAt"}
    assert patched["summary"] == "Bees need forage."
    assert recorder.body(0)["data"]["content"] == DRAFT


@pytest.mark.asyncio
async def test_failed_save_keeps_success_state(settings: Settings) -> None:
    recorder = Recorder(httpx.Response(503, json={"message": "unavailable"}))
    panel = AnalysisPanel(
        AnalysisPipeline(FakeCompletion("Reworded.")),
        FeatureKind.REPHRASE,
        persistence=_appwrite(settings, recorder),
        context=_session(),
    )

    await panel.trigger(DRAFT)
    await panel.drain()

    assert panel.state == PanelState.SUCCESS
    assert panel.result == RephraseResult(text="Reworded.")
    assert len(panel.persist_errors) == 1
    assert panel.login_required is False
    assert panel.document_id is None


@pytest.mark.asyncio
async def test_missing_session_flags_login_required(settings: Settings) -> None:
    recorder = Recorder({"$id": "never"})
    panel = AnalysisPanel(
        AnalysisPipeline(FakeCompletion("Reworded.")),
        FeatureKind.REPHRASE,
        persistence=_appwrite(settings, recorder),
        context=SessionContext(session=None),
    )

    await panel.trigger(DRAFT)
    await panel.drain()

    assert panel.state == PanelState.SUCCESS
    assert panel.login_required is True
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_closed_panel_refuses_triggers() -> None:
    panel = AnalysisPanel(AnalysisPipeline(FakeCompletion("x")), FeatureKind.REPHRASE)
    await panel.close()

    with pytest.raises(RuntimeError):
        await panel.trigger(DRAFT)


@pytest.mark.asyncio
async def test_close_mid_request_returns_to_idle() -> None:
    pipeline = GatedPipeline()
    panel = AnalysisPanel(pipeline, FeatureKind.REPHRASE)

    pending = asyncio.create_task(panel.trigger(DRAFT))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert panel.state == PanelState.LOADING

    await panel.close()

    assert await pending == PanelState.IDLE
    assert panel.state == PanelState.IDLE
    assert panel.result is None


@pytest.mark.asyncio
async def test_save_failures_keep_only_the_latest(settings: Settings) -> None:
    recorder = Recorder(httpx.Response(503, json={"message": "unavailable"}))
    panel = AnalysisPanel(
        AnalysisPipeline(FakeCompletion("Reworded.")),
        FeatureKind.REPHRASE,
        persistence=_appwrite(settings, recorder),
        context=_session(),
    )

    for _ in range(MAX_PERSIST_ERRORS + 5):
        await panel.trigger(DRAFT)
        await panel.drain()

    assert len(recorder.requests) == MAX_PERSIST_ERRORS + 5
    assert len(panel.persist_errors) == MAX_PERSIST_ERRORS
    assert panel.state == PanelState.SUCCESS
