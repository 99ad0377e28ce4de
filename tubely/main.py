"""
FastAPI application entry point.

This module creates and configures the FastAPI application through an
application factory (create_app), so tests can build apps with their
own settings and dependency overrides.

For local development:
    uvicorn tubely.main:app --reload

For production:
    gunicorn tubely.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .api.routes import health, videos
from .config.settings import Settings, get_settings
from .core.media.errors import UploadError

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level.upper(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Logs configuration problems at startup and creates the local assets
    root. Missing settings are not fatal so the service can still answer
    health checks.
    """
    settings: Settings = app.state.settings

    logger.info(
        "Tubely API starting",
        extra={
            "version": settings.api_version,
            "thumbnail_storage": settings.thumbnail_storage.value,
            "video_storage": settings.video_storage.value,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    settings.assets_root.mkdir(parents=True, exist_ok=True)

    yield

    logger.info("Tubely API shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings to build the app with. Defaults to the cached
            environment settings.
    """
    explicit_settings = settings is not None
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Media uploads for Tubely videos.

        ## Authentication

        All endpoints require an `Authorization: Bearer <token>` header.

        ## Uploads

        - `POST /videos/{videoID}/thumbnail`: multipart field `thumbnail` (JPEG or PNG)
        - `POST /videos/{videoID}/video`: multipart field `video` (MP4)

        Both respond with the updated video record.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    if explicit_settings:
        app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        videos.router,
        prefix="/videos",
        tags=["Videos"],
    )

    # local_disk locators are root-relative paths under this mount; the
    # directory is created at startup, not when the app is built
    app.mount(
        f"/{settings.assets_url_path.strip('/')}",
        StaticFiles(directory=settings.assets_root, check_dir=False),
        name="assets",
    )

    @app.exception_handler(UploadError)
    async def upload_error_handler(request: Request, exc: UploadError):
        """
        Map pipeline failures to their status codes.

        Only the error's public message goes to the client; the chained
        cause is logged.
        """
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "Upload request failed",
            extra={
                "path": request.url.path,
                "error_type": type(exc).__name__,
                "status_code": exc.status_code,
                "cause": repr(exc.__cause__) if exc.__cause__ else None,
            },
            exc_info=exc if exc.status_code >= 500 else None,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Prevents stack traces from leaking to clients. We log the full
        error server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


configure_logging(get_settings().log_level)

# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "tubely.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
