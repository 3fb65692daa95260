"""The request pipeline every analysis feature goes through.

    prompt builder -> completion client -> response parser

Knowledge search swaps the first two stages for a web-search call, and
content generation makes two completion calls (find an expert, then write
through that expert's lens).
"""

from __future__ import annotations

import logging

from contentcraft.analysis.base import AnalysisRequest, FeatureKind
from contentcraft.analysis.metrics import reading_time, word_count
from contentcraft.analysis.parser import parse_response
from contentcraft.analysis.prompts import (
    build_expert_prompt,
    build_generation_prompt,
    build_prompt,
)
from contentcraft.analysis.results import GeneratedContent, QualityResult, ResultModel
from contentcraft.errors import UpstreamError
from contentcraft.llm.client import CompletionClient
from contentcraft.search.client import SearchClient

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """Runs one :class:`AnalysisRequest` to a validated result."""

    def __init__(
        self, completion: CompletionClient, search: SearchClient | None = None
    ) -> None:
        self._completion = completion
        self._search = search

    async def run(self, request: AnalysisRequest) -> ResultModel:
        text = request.input_text
        if not text or not text.strip():
            raise ValueError("input text is empty")

        logger.debug("Running %s on %d chars", request.kind.value, len(text))

        if request.kind == FeatureKind.CONTENT_GENERATION:
            return await self._generate(request)
        if request.kind == FeatureKind.KNOWLEDGE_SEARCH:
            if self._search is None:
                raise UpstreamError("no search provider configured")
            return await self._search.search(text.strip())

        prompt = build_prompt(request.kind, text)
        raw = await self._completion.generate(
            system=prompt.system,
            messages=prompt.messages,
            json_mode=request.kind.is_json_contract,
        )
        result = parse_response(request.kind, raw)

        if isinstance(result, QualityResult):
            # The model's own counts are unreliable; these are exact.
            result.word_count = word_count(text)
            result.reading_time = reading_time(text)
        return result

    async def _generate(self, request: AnalysisRequest) -> GeneratedContent:
        title = request.input_text.strip()
        expert_prompt = build_expert_prompt(title)
        expert = await self._completion.generate(
            system=expert_prompt.system,
            messages=expert_prompt.messages,
        )
        logger.info("Identified expert for %r: %s", title, expert.strip())

        keywords = request.options.get("keywords") or []
        if isinstance(keywords, str):
            keywords = [k.strip() for k in keywords.split(",") if k.strip()]
        content_prompt = build_generation_prompt(
            title,
            expert.strip(),
            keywords=keywords,
            tone=request.options.get("tone"),
        )
        content = await self._completion.generate(
            system=content_prompt.system,
            messages=content_prompt.messages,
        )
        return GeneratedContent(content=content.strip(), expert=expert.strip())

    async def aclose(self) -> None:
        await self._completion.aclose()
        if self._search is not None:
            await self._search.aclose()
