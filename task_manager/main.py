# task_manager/main.py
"""FastAPI application for the task manager backend."""

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from task_manager.database import build_engine
from task_manager.errors import NotFoundError, ValidationError, format_errors
from task_manager.routes.tasks import router as tasks_router
from task_manager.store import InMemoryTaskStore, SqlTaskStore, TaskStore

logger = logging.getLogger(__name__)

_LOGGING_CONFIGURED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging once, honouring ``LOG_LEVEL``."""
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    _LOGGING_CONFIGURED = True


def allowed_origins() -> list[str]:
    return os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173,http://localhost:8000",
    ).split(",")


def create_store(kind: Optional[str] = None) -> TaskStore:
    """Build the store named by *kind* or ``TASK_STORE`` (``memory``/``sql``)."""
    kind = (kind or os.getenv("TASK_STORE", "memory")).strip().lower()
    if kind == "memory":
        return InMemoryTaskStore()
    if kind == "sql":
        return SqlTaskStore(build_engine())
    raise ValueError(f"Unknown TASK_STORE {kind!r}; expected 'memory' or 'sql'")


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def _handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return _error(400, exc.message)


async def _handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.debug("%s %s: %s", request.method, request.url.path, exc.message)
    return _error(404, exc.message)


async def _handle_malformed_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = format_errors(exc.errors())
    logger.info("Malformed %s %s: %s", request.method, request.url.path, message)
    return _error(400, message)


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail), exc.headers)


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    """Answer every failure with ``{"error": <message>}``."""
    app.add_exception_handler(ValidationError, _handle_validation_error)
    app.add_exception_handler(NotFoundError, _handle_not_found)
    app.add_exception_handler(RequestValidationError, _handle_malformed_request)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(Exception, _handle_unexpected)


def create_app(store: Optional[TaskStore] = None) -> FastAPI:
    """Build the application around *store*, or one chosen by ``TASK_STORE``."""
    configure_logging()
    if store is None:
        store = create_store()

    app = FastAPI(title="Task Manager")
    app.state.store = store
    logger.info("Serving tasks from the %s store", store.kind)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(),
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type"],
    )
    register_error_handlers(app)
    app.include_router(tasks_router)

    @app.get("/api/health")
    def health_check(request: Request):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "task-manager-api",
            "store": request.app.state.store.kind,
        }

    return app


def run() -> None:
    """Console entry point. The app and its store are built when uvicorn starts."""
    import uvicorn

    uvicorn.run(
        "task_manager.main:create_app",
        factory=True,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
