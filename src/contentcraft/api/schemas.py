"""Request and response bodies of the HTTP surface."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from contentcraft.analysis.base import FeatureKind


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty")
    return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContentInput(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _require_text(value)


class GenerationInput(BaseModel):
    title: str
    keywords: list[str] | str | None = None
    tone: str | None = None

    @field_validator("title")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _require_text(value)


class TopicInput(BaseModel):
    topic: str

    @field_validator("topic")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _require_text(value)


class SignupInput(BaseModel):
    email: str
    password: str = Field(min_length=8)
    name: str


class LoginInput(BaseModel):
    email: str
    password: str


class NameInput(BaseModel):
    name: str = Field(min_length=1, max_length=128)


class SessionOut(_CamelModel):
    token: str
    user_id: str
    name: str = ""
    email: str = ""


class SaveContentInput(_CamelModel):
    mode: FeatureKind
    content: str
    result: dict | str
    document_id: str | None = None

    @field_validator("content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _require_text(value)


class SaveContentOut(_CamelModel):
    document_id: str


class HistoryOut(BaseModel):
    total: int
    documents: list[dict]


class ErrorResponse(BaseModel):
    error: str
    trace_id: str


class HealthResponse(BaseModel):
    status: str = "ok"
