import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.config import Settings, get_settings
from app.database import Database
from app.errors import register_error_handlers
from app.routers import clients, comments, media, notifications, publications, publisher, stats, users
from app.services.notifications import NotificationChannel
from app.services.publisher_worker import PublicationScheduler
from app.services.storage import LocalMediaStore
from app.services.tokens import TokenService
from app.utils.log import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    database: Database = app.state.database

    database.connect()
    if settings.AUTO_CREATE_TABLES:
        database.create_all()
    if settings.SCHEDULER_ENABLED:
        app.state.scheduler.start()
    logger.info("Content hub backend started (env=%s)", settings.ENV)
    try:
        yield
    finally:
        await app.state.scheduler.stop()
        database.disconnect()
        logger.info("Content hub backend stopped")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.ENV, settings.LOG_LEVEL)

    app = FastAPI(title="Content Hub", lifespan=lifespan)

    database = Database(settings.DATABASE_URL)
    app.state.settings = settings
    app.state.database = database
    app.state.media_store = LocalMediaStore(settings.UPLOADS_DIR)
    app.state.token_service = TokenService(
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        expires_minutes=settings.JWT_EXPIRES_MINUTES,
    )
    app.state.channel = NotificationChannel()
    app.state.scheduler = PublicationScheduler(database, interval_seconds=settings.SCHEDULER_INTERVAL_SECONDS)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    # Register routers
    app.include_router(users.router, prefix="/api")
    app.include_router(clients.router, prefix="/api")
    app.include_router(publications.router, prefix="/api")
    app.include_router(media.router, prefix="/api")
    app.include_router(comments.router, prefix="/api")
    app.include_router(stats.router, prefix="/api")
    app.include_router(publisher.router, prefix="/api")
    app.include_router(notifications.router)

    app.mount("/uploads", StaticFiles(directory=settings.UPLOADS_DIR, check_dir=False), name="uploads")

    @app.get("/")
    def root():
        return {"status": "ok"}

    @app.get("/health")
    def health_check(request: Request):
        res = request.app.state.database.health_check()
        return JSONResponse(status_code=200 if res["ok"] else 503, content=res)

    return app


app = create_app()
