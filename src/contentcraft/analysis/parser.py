"""Turn raw completion text into a validated result."""

from __future__ import annotations

import json
import logging
import re

from pydantic import ValidationError

from contentcraft.analysis.base import FeatureKind
from contentcraft.analysis.results import RESULT_MODELS, ResultModel, RephraseResult
from contentcraft.errors import ContentIncompleteError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)


def _strip_code_fence(raw: str) -> str:
    text = raw.strip()
    match = _FENCE_RE.match(text)
    return match.group(1).strip() if match else text


def parse_json_object(raw: str) -> dict:
    """Decode a model reply that must be a single JSON object."""
    try:
        data = json.loads(_strip_code_fence(raw))
    except json.JSONDecodeError as exc:
        logger.warning("Model reply is not valid JSON (%d chars)", len(raw))
        raise ContentIncompleteError("model reply is not valid JSON") from exc
    if not isinstance(data, dict):
        raise ContentIncompleteError("model reply is not a JSON object")
    return data


def parse_response(kind: FeatureKind, raw: str) -> ResultModel:
    """Interpret ``raw`` for ``kind``.

    Prose features pass the text through. JSON-contract features are decoded
    and validated with fallbacks; a reply that cannot be decoded raises
    :class:`ContentIncompleteError`.
    """
    if kind == FeatureKind.REPHRASE:
        return RephraseResult(text=raw.strip())
    if not kind.is_json_contract:
        raise ValueError(f"{kind.value} replies are not parsed from a single completion")

    data = parse_json_object(raw)
    try:
        return RESULT_MODELS[kind].model_validate({**data, "kind": kind})
    except ValidationError as exc:
        raise ContentIncompleteError(f"model reply does not match {kind.value}") from exc
