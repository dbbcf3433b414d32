import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.infrastructure.database import SessionLocal, engine, initialize_database
from app.infrastructure.notifications import (
    NotificationConnectionManager,
    NotificationDispatcher,
)
from app.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema on startup and release streams and connections on shutdown."""

    initialize_database()
    yield
    app.state.notification_manager.close_all()
    engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Campus Societies Notifications", lifespan=lifespan)

    manager = NotificationConnectionManager(
        heartbeat_interval=settings.notification_heartbeat_seconds
    )
    app.state.notification_manager = manager
    app.state.notification_dispatcher = NotificationDispatcher(SessionLocal, manager)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    logger.debug("Application created with heartbeat every %ss", manager.heartbeat_interval)
    return app


app = create_app()
