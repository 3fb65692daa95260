"""Content records in a local SQLite file, for offline and development use.

Documents go in and come out in the same shape as the remote collection
(``$id``, ``userId``, camelCase fields) so callers cannot tell the two apart.

SQLModel sessions are synchronous, so each store call runs its session work
in the threadpool and the event loop keeps serving while SQLite writes.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import func
from sqlmodel import select

from contentcraft.backend.appwrite import new_document_id
from contentcraft.errors import BackendError
from contentcraft.storage.base import HistoryPage, page_offset
from contentcraft.storage.database import get_session
from contentcraft.storage.models import ContentRecord

_COLUMNS = {"content": "content", "analysis": "analysis", "mode": "mode"}
_TIMESTAMPS = ("createdAt", "updatedAt")


def _iso(value: datetime) -> str:
    # SQLite hands timestamps back without an offset; they were written as UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _to_document(record: ContentRecord) -> dict:
    return {
        **json.loads(record.fields_json or "{}"),
        "$id": record.id,
        "userId": record.user_id,
        "content": record.content,
        "analysis": record.analysis,
        "mode": record.mode,
        "createdAt": _iso(record.created_at),
        "updatedAt": _iso(record.updated_at),
    }


def _apply(record: ContentRecord, data: dict) -> None:
    extra = json.loads(record.fields_json or "{}")
    for key, value in data.items():
        if key in _COLUMNS:
            setattr(record, _COLUMNS[key], value or "")
        elif key in _TIMESTAMPS or key in ("$id", "userId"):
            continue
        else:
            extra[key] = value
    record.fields_json = json.dumps(extra)


class LocalContentStore:
    """SQLModel-backed implementation of the content store interface."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path

    async def create(
        self, user_id: str, data: dict, document_id: str | None = None
    ) -> dict:
        return await run_in_threadpool(self._create, user_id, data, document_id)

    async def get(self, document_id: str) -> dict:
        return await run_in_threadpool(self._get, document_id)

    async def update(self, document_id: str, data: dict) -> dict:
        return await run_in_threadpool(self._update, document_id, data)

    async def list_history(self, user_id: str, page: int, limit: int) -> HistoryPage:
        return await run_in_threadpool(self._list_history, user_id, page, limit)

    async def delete(self, document_id: str) -> None:
        await run_in_threadpool(self._delete, document_id)

    async def aclose(self) -> None:
        return None

    def _create(self, user_id: str, data: dict, document_id: str | None) -> dict:
        record = ContentRecord(id=document_id or new_document_id(), user_id=user_id)
        _apply(record, data)
        with get_session(self._db_path) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
            return _to_document(record)

    def _get(self, document_id: str) -> dict:
        with get_session(self._db_path) as session:
            return _to_document(_load(session, document_id))

    def _update(self, document_id: str, data: dict) -> dict:
        with get_session(self._db_path) as session:
            record = _load(session, document_id)
            _apply(record, data)
            record.updated_at = datetime.now(timezone.utc)
            session.add(record)
            session.commit()
            session.refresh(record)
            return _to_document(record)

    def _list_history(self, user_id: str, page: int, limit: int) -> HistoryPage:
        with get_session(self._db_path) as session:
            total = session.exec(
                select(func.count()).select_from(ContentRecord).where(
                    ContentRecord.user_id == user_id
                )
            ).one()
            records = session.exec(
                select(ContentRecord)
                .where(ContentRecord.user_id == user_id)
                .order_by(ContentRecord.created_at.desc())
                .offset(page_offset(page, limit))
                .limit(limit)
            ).all()
            return HistoryPage(total=total, documents=[_to_document(r) for r in records])

    def _delete(self, document_id: str) -> None:
        with get_session(self._db_path) as session:
            session.delete(_load(session, document_id))
            session.commit()


def _load(session, document_id: str) -> ContentRecord:
    record = session.get(ContentRecord, document_id)
    if record is None:
        raise BackendError(f"document {document_id} not found", status_code=404)
    return record
