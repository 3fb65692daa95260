"""Account operations against the auth backend."""

from __future__ import annotations

from dataclasses import dataclass

from contentcraft.backend.appwrite import AppwriteHTTP, new_document_id
from contentcraft.errors import AuthRequiredError


@dataclass
class UserSession:
    """An authenticated user. ``token`` is an opaque bearer secret."""

    token: str
    user_id: str
    name: str = ""
    email: str = ""


class AccountClient:
    """Signup, login, logout and profile updates."""

    def __init__(self, http: AppwriteHTTP) -> None:
        self._http = http

    async def signup(self, email: str, password: str, name: str) -> UserSession:
        """Create the account, then log straight in."""
        await self._http.request(
            "POST",
            "/account",
            json={
                "userId": new_document_id(),
                "email": email,
                "password": password,
                "name": name,
            },
        )
        return await self.login(email, password)

    async def login(self, email: str, password: str) -> UserSession:
        data = await self._http.request(
            "POST",
            "/account/sessions/email",
            json={"email": email, "password": password},
        )
        # Server-key logins expose the session secret; fall back to the session id.
        token = data.get("secret") or data.get("$id", "")
        if not token:
            raise AuthRequiredError("login returned no session")
        session = UserSession(token=token, user_id=data.get("userId", ""), email=email)
        return await self._hydrate(session)

    async def logout(self, token: str) -> None:
        await self._http.request("DELETE", "/account/sessions/current", session_token=token)

    async def get_user(self, token: str) -> UserSession:
        if not token:
            raise AuthRequiredError("no session token")
        data = await self._http.request("GET", "/account", session_token=token)
        return UserSession(
            token=token,
            user_id=data.get("$id", ""),
            name=data.get("name", ""),
            email=data.get("email", ""),
        )

    async def update_name(self, token: str, name: str) -> UserSession:
        data = await self._http.request(
            "PATCH", "/account/name", session_token=token, json={"name": name}
        )
        return UserSession(
            token=token,
            user_id=data.get("$id", ""),
            name=data.get("name", name),
            email=data.get("email", ""),
        )

    async def _hydrate(self, session: UserSession) -> UserSession:
        try:
            return await self.get_user(session.token)
        except AuthRequiredError:
            # Profile lookup is best effort; the session already has the user id.
            return session

    async def aclose(self) -> None:
        await self._http.aclose()
