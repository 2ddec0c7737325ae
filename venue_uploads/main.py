from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from .config import BUCKET_KINDS, Settings, get_settings
from .errors import register_exception_handlers
from .logging import RequestIdMiddleware, get_logger, setup_logging
from .ratelimit import ClientRateLimiter, enforce_rate_limit
from .routes.files import router as files_router
from .routes.uploads import router as uploads_router
from .routes.venues import router as venues_router
from .storage.factory import build_storage
from .storage.provider import StorageError


logger = get_logger(__name__)


def validate_buckets(settings: Settings) -> None:
    """Refuse to start unless every configured bucket exists in the backend."""
    storage = build_storage(settings)
    try:
        existing = {b.name for b in storage.list_buckets()}
    except StorageError as e:
        logger.error("bucket_validation_failed", error=str(e))
        raise RuntimeError("Could not list storage buckets") from e
    missing = [name for name in settings.buckets.values() if name not in existing]
    if missing:
        logger.error("required_buckets_missing", missing=missing)
        raise RuntimeError(f"Required bucket(s) not found: {', '.join(missing)}")
    logger.info("buckets_validated", buckets=sorted(settings.buckets.values()))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    if settings is None:
        settings = get_settings()
    setup_logging(settings.log_level)
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        dependencies=[Depends(enforce_rate_limit)],
    )
    app.state.rate_limiter = ClientRateLimiter.from_settings(settings)
    # Handlers resolve settings through Depends(get_settings); pin them to this instance
    app.dependency_overrides[get_settings] = lambda: settings

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    @app.middleware("http")
    async def security_headers(request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cross-Origin-Resource-Policy", "cross-origin")
        return response

    register_exception_handlers(app)

    # Routers
    app.include_router(uploads_router)
    app.include_router(venues_router)
    app.include_router(files_router)

    # Metrics
    if settings.metrics_enabled:
        Instrumentator().instrument(app).expose(app, include_in_schema=False)

    @app.get("/health")
    def health():
        return {
            "success": True,
            "message": f"{settings.app_name} is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
        }

    @app.get("/api")
    def api_info():
        return {
            "success": True,
            "message": settings.app_name,
            "version": settings.app_version,
            "endpoints": {
                "upload": {
                    **{kind: f"POST /api/upload/{kind}" for kind in BUCKET_KINDS},
                    "status": "GET /api/upload/status",
                },
                "venues": {
                    "list": "GET /api/venues",
                    "files": "GET /api/venues/{venueName}/files",
                    "delete": "DELETE /api/venues/{venueName}/files/{bucket}/{fileName}",
                },
            },
            "authentication": "Bearer token or ?token=<access_token>",
        }

    @app.on_event("startup")
    def _startup():
        logger.info(
            "startup",
            environment=settings.environment,
            storage_provider=settings.storage_provider,
        )
        if settings.validate_buckets_on_startup:
            validate_buckets(settings)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run("venue_uploads.main:app", host=settings.host, port=settings.port)
