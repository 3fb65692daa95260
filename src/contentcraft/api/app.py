"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contentcraft.analysis.pipeline import AnalysisPipeline
from contentcraft.api.deps import Services
from contentcraft.api.routes import account, analysis, contents
from contentcraft.api.schemas import ErrorResponse, HealthResponse
from contentcraft.api.trace import get_trace_id, trace_context_middleware
from contentcraft.backend.account import AccountClient
from contentcraft.backend.appwrite import AppwriteHTTP
from contentcraft.config import Settings, get_settings
from contentcraft.errors import (
    AuthRequiredError,
    BackendError,
    ContentIncompleteError,
    UpstreamError,
)
from contentcraft.llm.client import create_completion_client
from contentcraft.log import configure_logging
from contentcraft.persistence import create_content_store
from contentcraft.storage.database import dispose_engines
from contentcraft.search.client import SearchClient

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, trace_id=get_trace_id()).model_dump(),
    )


def build_services(settings: Settings) -> Services:
    """Wire the real provider clients from settings."""
    http = AppwriteHTTP(settings)
    return Services(
        settings=settings,
        pipeline=AnalysisPipeline(create_completion_client(settings), SearchClient(settings)),
        store=create_content_store(settings, http),
        accounts=AccountClient(http),
    )


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "ContentCraft API ready (provider=%s, backend=%s)",
            settings.completion_provider,
            settings.content_backend,
        )
        yield
        await services.pipeline.aclose()
        await services.store.aclose()
        await services.accounts.aclose()
        dispose_engines()

    app = FastAPI(title="ContentCraft Inspector", lifespan=lifespan)
    app.state.services = services
    app.middleware("http")(trace_context_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(UpstreamError)
    async def upstream_error(_: Request, exc: UpstreamError) -> JSONResponse:
        return _error(502, exc.user_message)

    @app.exception_handler(ContentIncompleteError)
    async def content_incomplete(_: Request, exc: ContentIncompleteError) -> JSONResponse:
        return _error(422, exc.user_message)

    @app.exception_handler(AuthRequiredError)
    async def auth_required(_: Request, exc: AuthRequiredError) -> JSONResponse:
        return _error(401, exc.user_message)

    @app.exception_handler(BackendError)
    async def backend_error(_: Request, exc: BackendError) -> JSONResponse:
        if exc.status_code in (404, 409):
            return _error(exc.status_code, str(exc))
        return _error(502, "The content service is unavailable. Please try again.")

    @app.exception_handler(RequestValidationError)
    async def validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(422, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error: %s", exc)
        return _error(500, "Internal server error")

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz() -> HealthResponse:
        return HealthResponse(status="ok")

    app.include_router(analysis.router, prefix="/api")
    app.include_router(contents.router, prefix="/api")
    app.include_router(account.router, prefix="/api")
    return app
