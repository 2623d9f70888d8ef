"""
FastAPI application factory.

Creates and configures the workflow builder API application.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workflow_builder import __version__
from workflow_builder.api.routes import router
from workflow_builder.config import StorageBackend, get_settings
from workflow_builder.core.errors import (
    DuplicateNodeError,
    EdgeNotFoundError,
    EditorNotHydratedError,
    InvalidNodeKindError,
    NodeNotFoundError,
    SimulationInProgressError,
    WorkflowBuilderError,
    WorkflowParseError,
    WorkflowValidationError,
)
from workflow_builder.editor.engine import WorkflowEditor
from workflow_builder.storage.factory import create_store
from workflow_builder.storage.redis.connection import close_redis

logger = logging.getLogger(__name__)

# Most specific first
ERROR_STATUS: list[tuple[type[WorkflowBuilderError], int]] = [
    (NodeNotFoundError, status.HTTP_404_NOT_FOUND),
    (EdgeNotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateNodeError, status.HTTP_409_CONFLICT),
    (SimulationInProgressError, status.HTTP_409_CONFLICT),
    (EditorNotHydratedError, status.HTTP_409_CONFLICT),
    (InvalidNodeKindError, status.HTTP_400_BAD_REQUEST),
    (WorkflowParseError, status.HTTP_400_BAD_REQUEST),
    (WorkflowValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
]


async def handle_builder_error(request: Request, exc: WorkflowBuilderError) -> JSONResponse:
    """Map workflow builder errors onto HTTP responses."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            status_code = code
            break

    content: dict = {"detail": str(exc)}
    if isinstance(exc, WorkflowValidationError):
        content["errors"] = exc.messages

    if status_code >= 500:
        logger.error(f"Unhandled editor error: {exc}", exc_info=True)

    return JSONResponse(status_code=status_code, content=content)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Builds and hydrates the editor unless one was injected, and flushes the
    last state on shutdown.
    """
    settings = get_settings()

    # Startup
    logger.info("Starting Workflow Builder...")

    editor: Optional[WorkflowEditor] = getattr(app.state, "editor", None)
    owns_editor = editor is None
    if owns_editor:
        store = await create_store(settings)
        editor = WorkflowEditor(store, settings=settings)
        app.state.editor = editor

    await editor.hydrate()
    logger.info(
        f"Workflow Builder started - Environment: {settings.environment.value}"
    )

    yield

    # Shutdown
    logger.info("Shutting down Workflow Builder...")

    await editor.save()
    if owns_editor:
        await editor.store.close()
        if settings.storage.backend == StorageBackend.REDIS:
            await close_redis()

    logger.info("Workflow Builder shutdown complete")


def create_app(editor: Optional[WorkflowEditor] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        editor: Pre-built editor to serve; built from settings at startup
            when omitted
    """
    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        description="Graph engine for a visual workflow editor",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    if editor is not None:
        app.state.editor = editor

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    app.add_exception_handler(WorkflowBuilderError, handle_builder_error)

    # Include routers
    app.include_router(router)

    # Root endpoint
    @app.get("/", tags=["root"])
    async def root():
        return {
            "name": settings.app_name,
            "version": __version__,
            "status": "running",
        }

    return app


# Application instance for uvicorn
app = create_app()
