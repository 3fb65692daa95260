"""SQLModel database models."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentRecord(SQLModel, table=True):
    """One authoring session: the draft plus every analysis run on it."""

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    content: str = ""
    analysis: str = ""
    mode: str = ""  # feature kind of the first analysis
    created_at: datetime = Field(default_factory=_utcnow, index=True)
    updated_at: datetime = Field(default_factory=_utcnow)
    fields_json: str = "{}"  # derived analysis fields, wire names
