"""FastAPI application factory for the reference content server."""

import logging
from dataclasses import dataclass
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog_admin.adapters.memory_store import InMemoryContentStore
from catalog_admin.api.auth import router as auth_router
from catalog_admin.api.content import PayloadRejected
from catalog_admin.api.content import router as content_router
from catalog_admin.api.sessions import SessionManager
from catalog_admin.app_logging import configure_logging
from catalog_admin.config import ServerSettings


@dataclass
class ServerState:
    """Holds the server's settings, store and sessions."""

    settings: ServerSettings
    store: InMemoryContentStore
    sessions: SessionManager


def create_app(
    settings: ServerSettings | None = None,
    store: InMemoryContentStore | None = None,
) -> FastAPI:
    """Create the content API with a seeded operator account."""
    configure_logging()
    logger = logging.getLogger(__name__)
    resolved_settings = settings or ServerSettings()
    resolved_store = store or InMemoryContentStore(
        password_rounds=resolved_settings.password_rounds
    )
    if not resolved_store.has_users():
        resolved_store.add_user(
            resolved_settings.admin_username,
            resolved_settings.admin_email,
            resolved_settings.admin_password,
        )
        logger.info("Seeded operator %s", resolved_settings.admin_username)

    app = FastAPI()
    app.state.server = ServerState(
        settings=resolved_settings,
        store=resolved_store,
        sessions=SessionManager(ttl=timedelta(hours=resolved_settings.session_ttl_hours)),
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"path": [part for part in error["loc"] if part != "body"], "message": error["msg"]}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400, content={"message": "Invalid data", "errors": errors}
        )

    @app.exception_handler(PayloadRejected)
    async def payload_rejected(request: Request, exc: PayloadRejected) -> JSONResponse:
        return JSONResponse(
            status_code=400, content={"message": "Invalid data", "errors": exc.errors}
        )

    app.include_router(auth_router)
    app.include_router(content_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
