"""FastAPI application and routes."""

from workflow_builder.api.app import create_app
from workflow_builder.api.routes import router

__all__ = ["create_app", "router"]
