"""Plain-REST access to the Appwrite backend (documents and accounts)."""

from __future__ import annotations

import logging
import uuid

import httpx

from contentcraft.config import Settings
from contentcraft.errors import AuthRequiredError, BackendError

logger = logging.getLogger(__name__)


def new_document_id() -> str:
    """A fresh id that satisfies Appwrite's id rules (<= 36 chars, a-z0-9)."""
    return uuid.uuid4().hex


class AppwriteHTTP:
    """Shared httpx client carrying the project header.

    Requests are made either with the server API key or with a user's
    session secret; ``_request`` picks the header.
    """

    def __init__(
        self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self._api_key = settings.appwrite_api_key
        self._client = httpx.AsyncClient(
            base_url=settings.appwrite_endpoint.rstrip("/"),
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "X-Appwrite-Project": settings.appwrite_project_id,
            },
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        session_token: str | None = None,
        json: dict | None = None,
        params: list[tuple[str, str]] | None = None,
    ) -> dict:
        """Send one request; return the decoded body ({} for empty replies)."""
        if session_token is not None:
            headers = {"X-Appwrite-Session": session_token}
        else:
            headers = {"X-Appwrite-Key": self._api_key}

        try:
            resp = await self._client.request(
                method, path, headers=headers, json=json, params=params
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise BackendError(f"backend unreachable: {exc}") from exc

        if resp.status_code == 401:
            raise AuthRequiredError(_error_message(resp) or "unauthorized")
        if resp.is_error:
            message = _error_message(resp) or resp.reason_phrase
            logger.warning("%s %s -> %d: %s", method, path, resp.status_code, message)
            raise BackendError(message, status_code=resp.status_code)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise BackendError("backend returned a non-JSON body") from exc

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        return str(body.get("message", ""))
    return ""
