from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from contentcraft.api.deps import Services, get_current_user, get_services, get_session_token
from contentcraft.api.schemas import LoginInput, NameInput, SessionOut, SignupInput
from contentcraft.backend.account import UserSession

router = APIRouter(prefix="/account")


def _session_out(session: UserSession) -> SessionOut:
    return SessionOut(
        token=session.token,
        user_id=session.user_id,
        name=session.name,
        email=session.email,
    )


@router.post("/signup", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
async def signup(body: SignupInput, services: Services = Depends(get_services)) -> SessionOut:
    session = await services.accounts.signup(body.email, body.password, body.name)
    return _session_out(session)


@router.post("/login", response_model=SessionOut)
async def login(body: LoginInput, services: Services = Depends(get_services)) -> SessionOut:
    session = await services.accounts.login(body.email, body.password)
    return _session_out(session)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: str = Depends(get_session_token),
    services: Services = Depends(get_services),
) -> Response:
    await services.accounts.logout(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("", response_model=SessionOut)
async def me(user: UserSession = Depends(get_current_user)) -> SessionOut:
    return _session_out(user)


@router.patch("/name", response_model=SessionOut)
async def update_name(
    body: NameInput,
    token: str = Depends(get_session_token),
    services: Services = Depends(get_services),
) -> SessionOut:
    session = await services.accounts.update_name(token, body.name)
    return _session_out(session)
