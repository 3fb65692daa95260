"""Result variants, one per feature kind.

Model output is untrusted: every field has a fallback and every score is
clamped to [0, 100] at validation time, so a result that exists is always
in range. Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

import json
import math
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from contentcraft.analysis.base import FeatureKind

SCORE_MIN = 0.0
SCORE_MAX = 100.0


def clamp_score(value: object) -> float:
    """Coerce to float and clamp into [0, 100]; unusable values become 0."""
    try:
        score = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return SCORE_MIN
    if math.isnan(score):
        return SCORE_MIN
    return max(SCORE_MIN, min(SCORE_MAX, score))


def _count(value: object) -> int:
    try:
        return max(0, int(float(value)))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return 0


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value) if isinstance(value, (dict, list)) else str(value)


def _string_list(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        return []
    return [_text(item) for item in value if item is not None]


class ResultModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> dict | str:
        """The JSON body returned to the browser for this result."""
        return self.model_dump(by_alias=True)


class GeneratedContent(ResultModel):
    kind: Literal[FeatureKind.CONTENT_GENERATION] = Field(
        default=FeatureKind.CONTENT_GENERATION, exclude=True
    )
    content: str = ""
    expert: str = ""


class AuthenticityResult(ResultModel):
    kind: Literal[FeatureKind.AUTHENTICITY_CHECK] = Field(
        default=FeatureKind.AUTHENTICITY_CHECK, exclude=True
    )
    ai_score: float = 0.0
    human_score: float = 0.0
    analysis: str = ""
    humanized_version: str = ""

    @field_validator("ai_score", "human_score", mode="before")
    @classmethod
    def clamp_scores(cls, value: object) -> float:
        return clamp_score(value)

    @field_validator("analysis", "humanized_version", mode="before")
    @classmethod
    def coerce_text(cls, value: object) -> str:
        return _text(value)


class QualityResult(ResultModel):
    kind: Literal[FeatureKind.QUALITY_ANALYSIS] = Field(
        default=FeatureKind.QUALITY_ANALYSIS, exclude=True
    )
    content_score: float = 0.0
    word_count: int = 0
    reading_time: int = 0
    readability: float = 0.0
    tone: str = "neutral"
    key_insights: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)

    @field_validator("content_score", "readability", mode="before")
    @classmethod
    def clamp_scores(cls, value: object) -> float:
        return clamp_score(value)

    @field_validator("word_count", "reading_time", mode="before")
    @classmethod
    def coerce_counts(cls, value: object) -> int:
        return _count(value)

    @field_validator("tone", mode="before")
    @classmethod
    def default_tone(cls, value: object) -> str:
        text = _text(value).strip()
        return text or "neutral"

    @field_validator("key_insights", "improvements", mode="before")
    @classmethod
    def coerce_lists(cls, value: object) -> list[str]:
        return _string_list(value)


class OutlineItem(ResultModel):
    level: int = 1
    text: str = ""

    @field_validator("level", mode="before")
    @classmethod
    def clamp_level(cls, value: object) -> int:
        return max(1, _count(value))

    @field_validator("text", mode="before")
    @classmethod
    def coerce_text(cls, value: object) -> str:
        return _text(value)


class OutlineResult(ResultModel):
    kind: Literal[FeatureKind.OUTLINE_EXTRACTION] = Field(
        default=FeatureKind.OUTLINE_EXTRACTION, exclude=True
    )
    outline: list[OutlineItem] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    content_gaps: list[str] = Field(default_factory=list)

    @field_validator("outline", mode="before")
    @classmethod
    def coerce_outline(cls, value: object) -> list:
        if not isinstance(value, (list, tuple)):
            return []
        items = []
        for entry in value:
            if isinstance(entry, str):
                items.append({"level": 1, "text": entry})
            elif isinstance(entry, dict):
                items.append(entry)
        return items

    @field_validator("suggestions", "content_gaps", mode="before")
    @classmethod
    def coerce_lists(cls, value: object) -> list[str]:
        return _string_list(value)


class OriginalityResult(ResultModel):
    kind: Literal[FeatureKind.ORIGINALITY_CHECK] = Field(
        default=FeatureKind.ORIGINALITY_CHECK, exclude=True
    )
    plagiarism_score: float = 0.0
    uniqueness_score: float = 0.0
    analysis: str = ""
    suggestions: list[str] = Field(default_factory=list)
    improved_version: str = ""

    @field_validator("plagiarism_score", "uniqueness_score", mode="before")
    @classmethod
    def clamp_scores(cls, value: object) -> float:
        return clamp_score(value)

    @field_validator("analysis", "improved_version", mode="before")
    @classmethod
    def coerce_text(cls, value: object) -> str:
        return _text(value)

    @field_validator("suggestions", mode="before")
    @classmethod
    def coerce_lists(cls, value: object) -> list[str]:
        return _string_list(value)


class RephraseResult(ResultModel):
    kind: Literal[FeatureKind.REPHRASE] = Field(default=FeatureKind.REPHRASE, exclude=True)
    text: str = ""

    def to_payload(self) -> str:
        return self.text


class SearchHit(ResultModel):
    title: str = ""
    url: str = ""
    content: str = ""

    @field_validator("title", "url", "content", mode="before")
    @classmethod
    def coerce_text(cls, value: object) -> str:
        return _text(value)


class KnowledgeSearchResult(ResultModel):
    kind: Literal[FeatureKind.KNOWLEDGE_SEARCH] = Field(
        default=FeatureKind.KNOWLEDGE_SEARCH, exclude=True
    )
    answer: str = ""
    results: list[SearchHit] = Field(default_factory=list)

    @field_validator("answer", mode="before")
    @classmethod
    def coerce_text(cls, value: object) -> str:
        return _text(value)

    @field_validator("results", mode="before")
    @classmethod
    def coerce_results(cls, value: object) -> list:
        if not isinstance(value, (list, tuple)):
            return []
        return [hit for hit in value if isinstance(hit, dict)]


AnalysisResult = Annotated[
    Union[
        GeneratedContent,
        AuthenticityResult,
        QualityResult,
        OutlineResult,
        OriginalityResult,
        RephraseResult,
        KnowledgeSearchResult,
    ],
    Field(discriminator="kind"),
]

RESULT_MODELS: dict[FeatureKind, type[ResultModel]] = {
    FeatureKind.CONTENT_GENERATION: GeneratedContent,
    FeatureKind.AUTHENTICITY_CHECK: AuthenticityResult,
    FeatureKind.QUALITY_ANALYSIS: QualityResult,
    FeatureKind.OUTLINE_EXTRACTION: OutlineResult,
    FeatureKind.ORIGINALITY_CHECK: OriginalityResult,
    FeatureKind.REPHRASE: RephraseResult,
    FeatureKind.KNOWLEDGE_SEARCH: KnowledgeSearchResult,
}
