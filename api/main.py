"""
FastAPI server: start runs and poll their progress.

Usage:
    eduforge serve
    uvicorn api.main:create_app --factory --port 5000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.registry import RunRegistry
from api.routers.workflows import router as workflows_router
from config.exceptions import EduForgeError, ProgressNotFoundError, ValidationError
from config.settings import Settings, get_settings
from models.progress_store import ProgressStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ProgressStore] = None,
    **run_kwargs,
) -> FastAPI:
    """Build the API application.

    Args:
        settings: Settings instance. Defaults to ``get_settings()``.
        store: Progress store shared by every run and endpoint.
        run_kwargs: Extra ``run_workflow`` arguments (agents, renderer).
    """
    settings = settings or get_settings()
    store = store or ProgressStore(settings.progress_db_path, settings.progress_overwrite_existing)
    registry = RunRegistry(settings, store=store, **run_kwargs)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await registry.shutdown()

    app = FastAPI(
        title="EduForge API",
        description="Long-form educational content generation runs",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.registry = registry

    @app.exception_handler(EduForgeError)
    async def eduforge_error_handler(request: Request, exc: EduForgeError):
        if isinstance(exc, ProgressNotFoundError):
            status_code = 404
        elif isinstance(exc, ValidationError):
            status_code = 400
        elif exc.transient:
            status_code = 503
        else:
            status_code = 500
        logger.warning("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.get("/api/health", tags=["Health"])
    async def health():
        return {"status": "ok", "activeRuns": registry.active_count}

    app.include_router(workflows_router)
    return app
