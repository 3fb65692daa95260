"""Map a feature kind and the user's text to a system/user prompt pair."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from contentcraft.analysis.base import FeatureKind
from contentcraft.analysis.metrics import word_count

_env = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent.parent / "templates")),
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=StrictUndefined,
)

TEMPLATE_MAP = {
    FeatureKind.AUTHENTICITY_CHECK: "authenticity_check.j2",
    FeatureKind.QUALITY_ANALYSIS: "quality_analysis.j2",
    FeatureKind.OUTLINE_EXTRACTION: "outline_extraction.j2",
    FeatureKind.ORIGINALITY_CHECK: "originality_check.j2",
    FeatureKind.REPHRASE: "rephrase.j2",
}

USER_TEMPLATES = {
    FeatureKind.AUTHENTICITY_CHECK: (
        "Please analyze the following content and provide a detailed report, "
        "including a humanized version: {text}"
    ),
    FeatureKind.QUALITY_ANALYSIS: (
        "Analyze the following content and provide scores and insights: {text}"
    ),
    FeatureKind.OUTLINE_EXTRACTION: (
        "Analyze the following content and provide an outline with suggestions "
        "for improvement: {text}"
    ),
    FeatureKind.ORIGINALITY_CHECK: (
        "Analyze this content for plagiarism and suggest improvements: {text}"
    ),
    FeatureKind.REPHRASE: "Rephrase the following: {text}",
}


def render(template_name: str, **context: object) -> str:
    """Render a system prompt; a missing variable is an error, not a blank."""
    return _env.get_template(template_name).render(**context).strip()


@dataclass(frozen=True)
class Prompt:
    system: str
    user: str

    @property
    def messages(self) -> list[dict]:
        return [{"role": "user", "content": self.user}]


def build_prompt(kind: FeatureKind, text: str) -> Prompt:
    """Build the single-call prompt for a completion-backed feature.

    The user text is embedded verbatim; nothing is escaped or truncated.
    """
    if kind not in TEMPLATE_MAP:
        raise ValueError(f"{kind.value} has no single-call prompt")
    system = render(TEMPLATE_MAP[kind], word_count=word_count(text))
    # str.replace rather than str.format so braces in user text stay literal
    user = USER_TEMPLATES[kind].replace("{text}", text)
    return Prompt(system=system, user=user)


def build_expert_prompt(title: str) -> Prompt:
    """First step of content generation: who is the authority on this title?"""
    return Prompt(
        system=render("content_expert.j2"),
        user=(
            f'Based on the topic "{title}", who is the most credible expert, '
            f"researcher, or authority on this subject?"
        ),
    )


def build_generation_prompt(
    title: str,
    expert: str,
    *,
    keywords: list[str] | None = None,
    tone: str | None = None,
) -> Prompt:
    """Second step of content generation, written through the expert's lens."""
    return Prompt(
        system=render(
            "content_generation.j2",
            expert=expert,
            keywords=keywords or [],
            tone=tone or "",
        ),
        user=(
            f'Generate detailed, well-structured content for the following title: "{title}". '
            f"Include appropriate headings, paragraphs, and relevant information."
        ),
    )
