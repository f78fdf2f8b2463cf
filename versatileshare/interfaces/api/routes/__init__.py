from fastapi import FastAPI

from .notifications import router as notifications_router
from .resources import router as resources_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(notifications_router)
    app.include_router(resources_router)
