import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from versatileshare.config import get_settings
from versatileshare.domain.errors import ErrorKind, NotificationError
from versatileshare.infrastructure.database import SessionLocal, engine, initialize_database
from versatileshare.interfaces.api.dependencies import build_realtime_services
from versatileshare.interfaces.api.routes import register_routes

ERROR_STATUS = {
    ErrorKind.AUTHENTICATION_REJECTED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_CREDENTIAL: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.RESOLUTION_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database and realtime services, then release them on shutdown."""

    initialize_database()
    app.state.realtime = build_realtime_services(SessionLocal)
    yield
    engine.dispose()


async def handle_notification_error(request: Request, exc: NotificationError) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content={"detail": exc.detail, "kind": exc.kind.value},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    logging.getLogger("versatileshare").setLevel(settings.log_level)

    app = FastAPI(title="VersatileShare notifications", lifespan=lifespan)

    # The browser client connects from the frontend dev servers by default.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(NotificationError, handle_notification_error)

    register_routes(app)
    return app


app = create_app()
