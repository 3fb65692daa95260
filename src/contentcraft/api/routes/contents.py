"""Content history: save an analysis, list past sessions, delete one."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import ValidationError

from contentcraft.analysis.results import RESULT_MODELS
from contentcraft.api.deps import Services, get_current_user, get_services
from contentcraft.api.schemas import HistoryOut, SaveContentInput, SaveContentOut
from contentcraft.backend.account import UserSession
from contentcraft.persistence import SessionContext

router = APIRouter(prefix="/contents")


async def _check_owner(services: Services, document_id: str, user: UserSession) -> None:
    document = await services.store.get(document_id)
    if document.get("userId") != user.user_id:
        # Same answer as a missing id; do not confirm the record exists.
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="document not found")


@router.post("", response_model=SaveContentOut)
async def save_content(
    body: SaveContentInput,
    user: UserSession = Depends(get_current_user),
    services: Services = Depends(get_services),
) -> SaveContentOut:
    payload = {"text": body.result} if isinstance(body.result, str) else body.result
    try:
        result = RESULT_MODELS[body.mode].model_validate({**payload, "kind": body.mode})
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"result does not match {body.mode.value}",
        ) from exc

    if body.document_id is not None:
        await _check_owner(services, body.document_id, user)

    context = SessionContext(session=user, document_id=body.document_id)
    document_id = await services.persistence.save(context, body.mode, body.content, result)
    return SaveContentOut(document_id=document_id)


@router.get("", response_model=HistoryOut)
async def list_history(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=50),
    user: UserSession = Depends(get_current_user),
    services: Services = Depends(get_services),
) -> HistoryOut:
    page_size = limit or services.settings.history_page_size
    history = await services.store.list_history(user.user_id, page, page_size)
    return HistoryOut(total=history.total, documents=history.documents)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_content(
    document_id: str,
    user: UserSession = Depends(get_current_user),
    services: Services = Depends(get_services),
) -> Response:
    await _check_owner(services, document_id, user)
    await services.store.delete(document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
