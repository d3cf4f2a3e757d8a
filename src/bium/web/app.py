# src/bium/web/app.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..core.errors import NotFound, PersistenceError, ValidationError
from ..core.state import AppState
from .routes import router

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(state: AppState) -> FastAPI:
    """Build the JSON API around an already-loaded AppState."""
    settings = state.settings
    app = FastAPI(
        title=f"{getattr(settings, 'app_name', 'bium')} API",
        description="Inbox, queues and weekly time blocks",
    )
    app.state.bium = state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(getattr(settings, "cors_origins", ["*"])),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotFound)
    async def _not_found(request: Request, exc: NotFound):
        return _error(404, str(exc))

    @app.exception_handler(ValidationError)
    async def _invalid(request: Request, exc: ValidationError):
        return _error(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def _bad_body(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        return _error(400, f"{where}: {first.get('msg', 'invalid request')}" if where else "invalid request")

    @app.exception_handler(PersistenceError)
    async def _storage_failed(request: Request, exc: PersistenceError):
        logger.error("Request %s %s failed to persist: %s", request.method, request.url.path, exc)
        return _error(500, "Database error")

    app.include_router(router)
    return app
