"""FastAPI application factory and error mapping."""

import logging
import sqlite3
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from taskbook.core.engine import Engine
from taskbook.core.errors import TaskbookError, format_errors

from .routes import auth_router, tasks_router

logger = logging.getLogger(__name__)


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    """Build the HTTP app. A default Engine (from settings) is created if none is given."""
    app = FastAPI(title="Taskbook")
    app.state.engine = engine or Engine()

    @app.exception_handler(TaskbookError)
    async def _taskbook_error(request: Request, exc: TaskbookError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def _request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": "validation", "message": format_errors(list(exc.errors()))},
        )

    @app.exception_handler(sqlite3.Error)
    async def _store_error(request: Request, exc: sqlite3.Error) -> JSONResponse:
        logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "store", "message": "Storage failure"},
        )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(auth_router)
    app.include_router(tasks_router)
    return app
