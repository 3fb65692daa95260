"""Headless analysis panel: the state machine behind each dashboard tab.

    IDLE --trigger(text)--> LOADING --> SUCCESS | ERROR

SUCCESS and ERROR hold until the next trigger. A new trigger cancels the
request in flight, and a generation counter drops any reply that arrives for
a superseded trigger. Saving is a separate background task: a failed save is
logged and recorded in ``persist_errors`` (the last ``MAX_PERSIST_ERRORS``)
but never changes the panel state. Closing a panel mid-request returns it
to IDLE.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from contentcraft.analysis.base import AnalysisRequest, FeatureKind
from contentcraft.analysis.metrics import reading_time, word_count
from contentcraft.analysis.pipeline import AnalysisPipeline
from contentcraft.analysis.results import ResultModel
from contentcraft.errors import (
    GENERIC_FAILURE_MESSAGE,
    AuthRequiredError,
    ContentCraftError,
)
from contentcraft.persistence import PersistenceAdapter, SessionContext

logger = logging.getLogger(__name__)

# Only the most recent save failures are kept.
MAX_PERSIST_ERRORS = 20


class PanelState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class AnalysisPanel:
    """Drives one feature kind for one editor session."""

    def __init__(
        self,
        pipeline: AnalysisPipeline,
        kind: FeatureKind,
        *,
        persistence: PersistenceAdapter | None = None,
        context: SessionContext | None = None,
        options: dict | None = None,
    ) -> None:
        self.kind = kind
        self._pipeline = pipeline
        self._persistence = persistence
        self._context = context
        self._options = options or {}

        self.state = PanelState.IDLE
        self.text = ""
        self.result: ResultModel | None = None
        self.error: str | None = None
        self.login_required = False
        self.persist_errors: list[BaseException] = []

        self._generation = 0
        self._inflight: asyncio.Task | None = None
        self._saves: set[asyncio.Task] = set()
        self._closed = False

    @property
    def word_count(self) -> int:
        return word_count(self.text)

    @property
    def reading_time(self) -> int:
        return reading_time(self.text)

    @property
    def document_id(self) -> str | None:
        return self._context.document_id if self._context else None

    async def trigger(self, text: str) -> PanelState:
        """Analyze ``text``; returns the state the panel settled in."""
        if self._closed:
            raise RuntimeError("panel is closed")

        self.text = text
        if not text.strip():
            return self.state

        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._generation += 1
        generation = self._generation

        self.state = PanelState.LOADING
        self.result = None
        self.error = None

        request = AnalysisRequest(kind=self.kind, input_text=text, options=dict(self._options))
        task = asyncio.create_task(self._pipeline.run(request))
        self._inflight = task
        try:
            result = await task
        except asyncio.CancelledError:
            if generation != self._generation or self._closed:
                return self.state
            # The caller cancelled us.
            self.state = PanelState.IDLE
            raise
        except ContentCraftError as exc:
            if generation == self._generation:
                self._fail(exc)
            return self.state
        except Exception:
            if generation == self._generation:
                self.state = PanelState.ERROR
                self.error = GENERIC_FAILURE_MESSAGE
            raise
        finally:
            if self._inflight is task:
                self._inflight = None

        if generation != self._generation:
            return self.state

        self.state = PanelState.SUCCESS
        self.result = result
        self._dispatch_save(text, result)
        return self.state

    def _fail(self, exc: ContentCraftError) -> None:
        logger.warning("%s failed: %s", self.kind.value, exc)
        self.state = PanelState.ERROR
        self.error = exc.user_message

    def _dispatch_save(self, text: str, result: ResultModel) -> None:
        if self._persistence is None or self._context is None:
            return
        task = asyncio.create_task(
            self._persistence.save(self._context, self.kind, text, result)
        )
        self._saves.add(task)
        task.add_done_callback(self._on_save_done)

    def _on_save_done(self, task: asyncio.Task) -> None:
        self._saves.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        if isinstance(exc, AuthRequiredError):
            self.login_required = True
            logger.info("Background save skipped for %s: login required", self.kind.value)
        else:
            logger.warning("Background save failed for %s: %s", self.kind.value, exc)
        self.persist_errors.append(exc)
        del self.persist_errors[:-MAX_PERSIST_ERRORS]

    async def drain(self) -> None:
        """Wait for every pending background save."""
        if self._saves:
            await asyncio.gather(*list(self._saves), return_exceptions=True)

    async def close(self) -> None:
        """Tear down: cancel the request in flight, let saves finish."""
        self._closed = True
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        if self.state == PanelState.LOADING:
            self.state = PanelState.IDLE
        await self.drain()
