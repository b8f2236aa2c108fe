"""FastAPI application serving one compile session."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from compilepad import __version__
from compilepad.core.errors import ArtifactUnavailableError, CompilePadError
from compilepad.core.logging import VerbosityLevel, get_logger
from compilepad.core.session import CompileSession

from .api.artifact import mount_artifact
from .api.session import mount_session

_logger = get_logger(__name__)


def uvicorn_log_level(verbosity: int) -> str:
    """Map compilepad verbosity to a uvicorn log level."""
    if verbosity <= VerbosityLevel.QUIET:
        return "error"
    if verbosity <= VerbosityLevel.VERBOSE:
        return "info"
    return "debug"


def silence_uvicorn_loggers() -> None:
    """Best-effort silencing for uvicorn loggers (quiet mode)."""
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = False
        logger.setLevel(logging.ERROR)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    session: CompileSession = app.state.session
    if not await session.start():
        _logger.error("compiler backend unavailable; serving in not-ready state")
    try:
        yield
    finally:
        session.stop()
        await session.wait_idle()


def create_app(session: CompileSession | None = None) -> FastAPI:
    """Create the web application.

    Args:
        session: Session to serve (a default session when omitted)

    Returns:
        FastAPI app; the session starts and stops with the app lifespan
    """
    app = FastAPI(title="compilepad", version=__version__, lifespan=_lifespan)
    app.state.session = session or CompileSession()

    @app.exception_handler(ArtifactUnavailableError)
    async def _artifact_unavailable(_request: Request, exc: ArtifactUnavailableError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": exc.message, "suggestion": exc.suggestion})

    @app.exception_handler(CompilePadError)
    async def _compilepad_error(_request: Request, exc: CompilePadError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": exc.message, "suggestion": exc.suggestion})

    mount_session(app)
    mount_artifact(app)
    return app
