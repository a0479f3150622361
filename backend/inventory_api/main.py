from contextlib import asynccontextmanager
from typing import Optional
import logging
import os
import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from inventory_api.core.config import Settings, get_settings
from inventory_api.core.database import Database
from inventory_api.core.errors import register_exception_handlers
from inventory_api.core.logging_config import configure_logging
from inventory_api.core.security import build_credential_service, build_token_service
from inventory_api.routes.auth import router as auth_router
from inventory_api.routes.categories import router as categories_router
from inventory_api.routes.dashboard import router as dashboard_router
from inventory_api.routes.health import router as health_router
from inventory_api.routes.products import router as products_router
from inventory_api.routes.users import router as users_router
from inventory_api.services.blob_store import LocalBlobStore
from inventory_api.services.seed import seed_defaults


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    db: Database = app.state.db

    # Production schema is managed by Alembic
    if not settings.is_production:
        db.create_all()

    if settings.should_seed:
        try:
            with db.session() as session:
                seed_defaults(session, settings, app.state.credentials)
        except Exception:
            logger.exception("Seeding default data failed")

    logger.info("Inventory API started env=%s", settings.env)
    yield
    db.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Inventory Management API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = Database(settings)
    app.state.tokens = build_token_service(settings)
    app.state.credentials = build_credential_service(settings)
    app.state.blob_store = LocalBlobStore(settings.upload_dir, settings.upload_url_prefix)

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
        )

    if not settings.is_production:

        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info("%s %s -> %s (%.1fms)", request.method, request.url.path, response.status_code, elapsed_ms)
            return response

    register_exception_handlers(app, settings.is_production)

    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(categories_router, prefix="/api/categories", tags=["categories"])
    app.include_router(products_router, prefix="/api/products", tags=["products"])
    app.include_router(users_router, prefix="/api/users", tags=["users"])
    app.include_router(dashboard_router, prefix="/api/dashboard", tags=["dashboard"])

    os.makedirs(settings.upload_dir, exist_ok=True)
    app.mount(settings.upload_url_prefix, StaticFiles(directory=settings.upload_dir), name="uploads")

    return app


app = create_app()


def run(settings: Optional[Settings] = None) -> None:
    """Serve the API on `settings.port`."""
    settings = settings or get_settings()
    uvicorn.run("inventory_api.main:app", host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
