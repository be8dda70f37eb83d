"""
FastAPI application serving commit bundles.
"""

from __future__ import annotations

import importlib.metadata
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Dict

import structlog
from fastapi import Depends, FastAPI, HTTPException, Path, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.engine.url import make_url
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .core.orchestrator import ResolutionOrchestrator, build_orchestrator
from .db.base import (
    check_database,
    get_database_url,
    get_session_local,
    init_database,
)
from .db.services import SqlArtifactIndex
from .errors import RepositoryManagerError
from .logs import configure_logging
from .schemas.projects import COMMIT_PATTERN, PROJECT_ID_PATTERN, ErrorResponse

logger = structlog.get_logger()

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    configure_logging(settings)
    logger.info(
        "Starting Repository Manager",
        base_path=settings.base_path,
        database_url=make_url(get_database_url()).render_as_string(hide_password=True),
    )

    try:
        init_database()
        app.state.orchestrator = build_orchestrator(
            settings, SqlArtifactIndex(get_session_local())
        )
        logger.info("Orchestrator ready")
    except Exception as e:
        logger.error(f"Failed to start application: {e}")
        raise

    yield

    logger.info("Shutting down Repository Manager")
    app.state.orchestrator.source.close()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="Per-commit bundles of upstream projects",
    version=importlib.metadata.version("repository-manager"),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


def get_orchestrator(request: Request) -> ResolutionOrchestrator:
    """Dependency returning the orchestrator built at startup."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Orchestrator not initialized")
    return orchestrator


@app.exception_handler(RepositoryManagerError)
async def resolution_error_handler(
    request: Request, exc: RepositoryManagerError
) -> JSONResponse:
    logger.error(
        "resolve_failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=exc.message).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Malformed ids never match a project route.
    return JSONResponse(
        status_code=404, content=ErrorResponse(message="Not found").model_dump()
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unexpected_error", path=request.url.path)
    return JSONResponse(
        status_code=500, content=ErrorResponse(message="Internal error").model_dump()
    )


# Health and Info Endpoints
@app.get("/healthz", tags=["system"])
def healthz() -> Dict[str, Any]:
    """Health check endpoint, including database connectivity."""
    return {"status": "ok", "db": check_database()}


@app.get("/version", tags=["system"])
def version() -> Dict[str, str]:
    """Return the version of the application."""
    return {"version": importlib.metadata.version("repository-manager")}


@app.get(
    "/api/v1/projects/{project_id}/{commit}/download",
    tags=["projects"],
    response_class=FileResponse,
    responses={
        200: {"content": {"application/octet-stream": {}}},
        404: {"model": ErrorResponse, "description": "Project or commit not found"},
        500: {"model": ErrorResponse, "description": "Resolution failed"},
        502: {"model": ErrorResponse, "description": "Project source unreachable"},
    },
)
def download(
    project_id: str = Path(..., pattern=PROJECT_ID_PATTERN),
    commit: str = Path(..., pattern=COMMIT_PATTERN),
    orchestrator: ResolutionOrchestrator = Depends(get_orchestrator),
) -> FileResponse:
    """
    Download the bundle of one commit of a project.

    The first request for a project downloads and extracts it; later
    requests for other commits only check out and bundle. Runs in the
    worker thread pool, so a client disconnect does not interrupt it.
    """
    logger.info("Download", project_id=project_id, commit=commit)
    record = orchestrator.resolve(project_id, commit)

    return FileResponse(
        record.bundle_path,
        media_type="application/octet-stream",
        filename=f"{record.project_name}.bundle",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
