"""Web-search client used for knowledge-gap lookups (Tavily REST API)."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from contentcraft.analysis.results import KnowledgeSearchResult
from contentcraft.config import Settings
from contentcraft.errors import UpstreamError

logger = logging.getLogger(__name__)


class SearchClient:
    """Wrapper around the search provider's ``/search`` endpoint."""

    def __init__(
        self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=settings.search_base_url,
            headers={
                "Authorization": f"Bearer {settings.tavily_api_key}",
                "Content-Type": "application/json",
            },
            timeout=settings.request_timeout,
            transport=transport,
        )
        self._search_depth = settings.search_depth
        self._max_results = settings.search_max_results

    async def search(self, query: str) -> KnowledgeSearchResult:
        """Run one search and return the provider's answer plus top results."""
        payload = {
            "query": query,
            "search_depth": self._search_depth,
            "include_answer": True,
            "max_results": self._max_results,
        }
        try:
            resp = await self._client.post("/search", json=payload)
            resp.raise_for_status()
            data = resp.json()
            return KnowledgeSearchResult.model_validate(
                {"answer": data.get("answer"), "results": data.get("results")}
            )
        except httpx.HTTPError as exc:
            logger.warning("Search request failed: %s", exc)
            raise UpstreamError(str(exc)) from exc
        except (ValueError, AttributeError, ValidationError) as exc:
            logger.warning("Malformed search response: %r", exc)
            raise UpstreamError("malformed search response") from exc

    async def aclose(self) -> None:
        await self._client.aclose()
