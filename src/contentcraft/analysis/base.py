"""Feature kinds and the per-action analysis request."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class FeatureKind(str, Enum):
    CONTENT_GENERATION = "content-generation"
    AUTHENTICITY_CHECK = "authenticity-check"
    QUALITY_ANALYSIS = "quality-analysis"
    OUTLINE_EXTRACTION = "outline-extraction"
    ORIGINALITY_CHECK = "originality-check"
    REPHRASE = "rephrase"
    KNOWLEDGE_SEARCH = "knowledge-search"

    @property
    def is_json_contract(self) -> bool:
        """True when the model must answer with a JSON object."""
        return self in JSON_CONTRACT_KINDS


JSON_CONTRACT_KINDS = frozenset(
    {
        FeatureKind.AUTHENTICITY_CHECK,
        FeatureKind.QUALITY_ANALYSIS,
        FeatureKind.OUTLINE_EXTRACTION,
        FeatureKind.ORIGINALITY_CHECK,
    }
)


@dataclass
class AnalysisRequest:
    """One user-triggered analysis. Not persisted.

    For content generation ``input_text`` is the title and ``options`` may
    carry ``keywords`` and ``tone``; for knowledge search it is the topic.
    """

    kind: FeatureKind
    input_text: str
    options: dict = field(default_factory=dict)
