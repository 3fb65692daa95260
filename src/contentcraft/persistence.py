"""Saving analyses to the content history.

One :class:`SessionContext` stands for one authoring session. The first
save creates a record and caches its id on the context; every later save
patches that same record. Writes are last-write-wins: two saves racing on a
context that has no id yet will each create a record.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from contentcraft.analysis.base import FeatureKind
from contentcraft.analysis.metrics import reading_time, word_count
from contentcraft.analysis.results import (
    AuthenticityResult,
    GeneratedContent,
    KnowledgeSearchResult,
    OriginalityResult,
    OutlineResult,
    QualityResult,
    RephraseResult,
    ResultModel,
)
from contentcraft.backend.account import UserSession
from contentcraft.backend.appwrite import AppwriteHTTP
from contentcraft.backend.documents import AppwriteContentStore
from contentcraft.config import Settings
from contentcraft.errors import AuthRequiredError, BackendError
from contentcraft.storage.base import ContentStore
from contentcraft.storage.local import LocalContentStore

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    """Who is writing, and which record their session writes to."""

    session: UserSession | None
    document_id: str | None = None


def record_fields(kind: FeatureKind, text: str, result: ResultModel) -> dict:
    """Flatten a result into the record's derived fields (wire names).

    A knowledge search runs on a topic, not the draft, so it only writes its
    own fields and leaves the stored draft and its counts alone.
    """
    if isinstance(result, KnowledgeSearchResult):
        return {
            "summary": result.answer,
            "relatedLinks": [json.dumps(hit.model_dump()) for hit in result.results],
        }

    fields: dict = {
        "content": text,
        "analysis": text,
        "wordCount": word_count(text),
        "readingTime": reading_time(text),
    }

    if isinstance(result, QualityResult):
        fields.update(
            contentScore=round(result.content_score),
            readability=round(result.readability),
            tone=result.tone,
            keyInsights=result.key_insights,
            improvements=result.improvements,
        )
    elif isinstance(result, AuthenticityResult):
        fields.update(
            aiScore=round(result.ai_score),
            humanScore=round(result.human_score),
            humanizedVersion=result.humanized_version,
        )
    elif isinstance(result, OutlineResult):
        fields.update(
            outline=[f"Level {item.level}: {item.text}" for item in result.outline],
            suggestions=result.suggestions,
            contentGaps=result.content_gaps,
        )
    elif isinstance(result, OriginalityResult):
        fields.update(
            plagiarismScore=round(result.plagiarism_score),
            uniquenessScore=round(result.uniqueness_score),
            suggestions=result.suggestions,
            improvedVersion=result.improved_version,
        )
    elif isinstance(result, RephraseResult):
        fields["rephrasedVersion"] = result.text
    elif isinstance(result, GeneratedContent):
        # The draft is the generated text; the title stays as the analysis input.
        fields.update(
            content=result.content,
            expert=result.expert,
            wordCount=word_count(result.content),
            readingTime=reading_time(result.content),
        )
    return fields


class PersistenceAdapter:
    """Create-then-patch writer for one session's content record."""

    def __init__(self, store: ContentStore) -> None:
        self._store = store

    async def save(
        self,
        context: SessionContext,
        kind: FeatureKind,
        text: str,
        result: ResultModel,
    ) -> str:
        """Persist ``result`` and return the record id."""
        if context.session is None or not context.session.token:
            raise AuthRequiredError("saving requires a logged-in session")

        now = datetime.now(timezone.utc).isoformat()
        fields = record_fields(kind, text, result)

        if context.document_id is None:
            document = await self._store.create(
                context.session.user_id,
                {**fields, "mode": kind.value, "createdAt": now, "updatedAt": now},
            )
            document_id = document.get("$id")
            if not document_id:
                raise BackendError("create returned no document id")
            context.document_id = document_id
            logger.info("Created content record %s (%s)", document_id, kind.value)
        else:
            await self._store.update(context.document_id, {**fields, "updatedAt": now})
            logger.debug("Patched content record %s (%s)", context.document_id, kind.value)

        return context.document_id


def create_content_store(
    settings: Settings, http: AppwriteHTTP | None = None
) -> ContentStore:
    """Build the store for ``settings.content_backend``."""
    if settings.content_backend == "sqlite":
        return LocalContentStore(settings.db_path)
    if settings.content_backend == "appwrite":
        return AppwriteContentStore(http or AppwriteHTTP(settings), settings)
    raise ValueError(f"Unknown content backend: {settings.content_backend!r}")
