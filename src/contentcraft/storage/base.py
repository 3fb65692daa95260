"""The interface both content-record backends implement."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass
class HistoryPage:
    """One page of a user's saved records, newest first."""

    total: int
    documents: list[dict] = field(default_factory=list)


class ContentStore(Protocol):
    async def create(
        self, user_id: str, data: dict, document_id: str | None = None
    ) -> dict: ...

    async def get(self, document_id: str) -> dict: ...

    async def update(self, document_id: str, data: dict) -> dict: ...

    async def list_history(self, user_id: str, page: int, limit: int) -> HistoryPage: ...

    async def delete(self, document_id: str) -> None: ...

    async def aclose(self) -> None: ...


def page_offset(page: int, limit: int) -> int:
    """Zero-based offset of 1-based ``page``."""
    return (max(page, 1) - 1) * limit
