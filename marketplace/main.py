import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.config import Settings, get_settings
from marketplace.database import Database
from marketplace.errors import ErrorCode, MarketplaceError
from marketplace.logging_config import configure_logging
from marketplace.notifications import NotificationEmitter
from marketplace.routes import (
    admin_analytics,
    admin_notifications,
    admin_orders,
    admin_projects,
    admin_users,
    health,
    notifications,
    orders,
    projects,
    webhooks,
)
from marketplace.services.payment_gateway import PaymentGateway, build_gateway

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[PaymentGateway] = None,
) -> FastAPI:
    """Build the API. Run with ``uvicorn marketplace.main:create_app --factory``."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)

        db = Database(settings.sqlalchemy_url)
        # Migrations own the schema everywhere else
        if settings.env in ("local", "test"):
            db.create_db_and_tables()

        app.state.settings = settings
        app.state.db = db
        app.state.gateway = gateway or build_gateway(settings)
        app.state.notifier = NotificationEmitter(db, settings)

        logger.info(
            f"Marketplace API started (env={settings.env}, "
            f"provider={app.state.gateway.provider})"
        )
        yield

        db.dispose()

    app = FastAPI(title="Marketplace Orders API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code.value},
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "code": ErrorCode.INTERNAL_FAULT.value,
            },
        )

    app.include_router(orders.router, prefix="/orders", tags=["Orders"])
    app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
    app.include_router(projects.router, prefix="/projects", tags=["Projects"])
    app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
    app.include_router(admin_orders.router, prefix="/admin/orders", tags=["Admin Orders"])
    app.include_router(admin_users.router, prefix="/admin/users", tags=["Admin Users"])
    app.include_router(
        admin_projects.router,
        prefix="/admin/projects",
        tags=["Admin Projects"],
    )
    app.include_router(
        admin_notifications.router,
        prefix="/admin/notifications",
        tags=["Admin Notifications"],
    )
    app.include_router(
        admin_analytics.router,
        prefix="/admin/analytics",
        tags=["Admin Analytics"],
    )
    app.include_router(health.router, prefix="/health", tags=["Health"])

    return app
