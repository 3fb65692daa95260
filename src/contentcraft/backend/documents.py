"""Content records kept in an Appwrite document collection."""

from __future__ import annotations

import json

from contentcraft.backend.appwrite import AppwriteHTTP, new_document_id
from contentcraft.config import Settings
from contentcraft.storage.base import HistoryPage, page_offset


def _query(method: str, attribute: str | None = None, values: list | None = None) -> str:
    query: dict = {"method": method}
    if attribute is not None:
        query["attribute"] = attribute
    if values is not None:
        query["values"] = values
    return json.dumps(query)


class AppwriteContentStore:
    """CRUD on the content collection using the server API key."""

    def __init__(self, http: AppwriteHTTP, settings: Settings) -> None:
        self._http = http
        self._path = (
            f"/databases/{settings.appwrite_database_id}"
            f"/collections/{settings.appwrite_content_collection_id}/documents"
        )

    async def create(
        self, user_id: str, data: dict, document_id: str | None = None
    ) -> dict:
        return await self._http.request(
            "POST",
            self._path,
            json={
                "documentId": document_id or new_document_id(),
                "data": {**data, "userId": user_id},
            },
        )

    async def get(self, document_id: str) -> dict:
        return await self._http.request("GET", f"{self._path}/{document_id}")

    async def update(self, document_id: str, data: dict) -> dict:
        return await self._http.request(
            "PATCH", f"{self._path}/{document_id}", json={"data": data}
        )

    async def list_history(self, user_id: str, page: int, limit: int) -> HistoryPage:
        params = [
            ("queries[]", _query("equal", "userId", [user_id])),
            ("queries[]", _query("orderDesc", "createdAt")),
            ("queries[]", _query("limit", values=[limit])),
            ("queries[]", _query("offset", values=[page_offset(page, limit)])),
        ]
        data = await self._http.request("GET", self._path, params=params)
        return HistoryPage(
            total=int(data.get("total", 0)),
            documents=list(data.get("documents", [])),
        )

    async def delete(self, document_id: str) -> None:
        await self._http.request("DELETE", f"{self._path}/{document_id}")

    async def aclose(self) -> None:
        await self._http.aclose()
