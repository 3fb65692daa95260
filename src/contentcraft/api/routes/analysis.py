"""One POST route per feature kind. Each is a thin pass through the pipeline."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from contentcraft.analysis.base import AnalysisRequest, FeatureKind
from contentcraft.api.deps import Services, get_services
from contentcraft.api.schemas import ContentInput, GenerationInput, TopicInput

router = APIRouter()


async def _run(
    services: Services, kind: FeatureKind, text: str, options: dict | None = None
) -> dict | str:
    result = await services.pipeline.run(
        AnalysisRequest(kind=kind, input_text=text, options=options or {})
    )
    return result.to_payload()


@router.post("/content-generation")
async def content_generation(
    body: GenerationInput, services: Services = Depends(get_services)
) -> dict:
    options = {"keywords": body.keywords, "tone": body.tone}
    return await _run(services, FeatureKind.CONTENT_GENERATION, body.title, options)


@router.post("/authenticity-check")
async def authenticity_check(
    body: ContentInput, services: Services = Depends(get_services)
) -> dict:
    return await _run(services, FeatureKind.AUTHENTICITY_CHECK, body.content)


@router.post("/quality-analysis")
async def quality_analysis(
    body: ContentInput, services: Services = Depends(get_services)
) -> dict:
    return await _run(services, FeatureKind.QUALITY_ANALYSIS, body.content)


@router.post("/outline-extraction")
async def outline_extraction(
    body: ContentInput, services: Services = Depends(get_services)
) -> dict:
    return await _run(services, FeatureKind.OUTLINE_EXTRACTION, body.content)


@router.post("/originality-check")
async def originality_check(
    body: ContentInput, services: Services = Depends(get_services)
) -> dict:
    return await _run(services, FeatureKind.ORIGINALITY_CHECK, body.content)


@router.post("/rephrase")
async def rephrase(body: ContentInput, services: Services = Depends(get_services)) -> str:
    return await _run(services, FeatureKind.REPHRASE, body.content)


@router.post("/knowledge-search")
async def knowledge_search(
    body: TopicInput, services: Services = Depends(get_services)
) -> dict:
    return await _run(services, FeatureKind.KNOWLEDGE_SEARCH, body.topic)
