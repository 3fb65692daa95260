"""Shared collaborators for the routes, held on ``app.state``."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, Request

from contentcraft.analysis.pipeline import AnalysisPipeline
from contentcraft.backend.account import AccountClient, UserSession
from contentcraft.config import Settings
from contentcraft.errors import AuthRequiredError
from contentcraft.persistence import PersistenceAdapter
from contentcraft.storage.base import ContentStore


@dataclass
class Services:
    settings: Settings
    pipeline: AnalysisPipeline
    store: ContentStore
    accounts: AccountClient

    @property
    def persistence(self) -> PersistenceAdapter:
        return PersistenceAdapter(self.store)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_session_token(x_session_token: str | None = Header(default=None)) -> str:
    """The caller's opaque session secret; absent means log in first."""
    if not x_session_token:
        raise AuthRequiredError("missing X-Session-Token header")
    return x_session_token


async def get_current_user(
    request: Request, token: str = Depends(get_session_token)
) -> UserSession:
    return await get_services(request).accounts.get_user(token)
