"""Marketplace FastAPI application.

Composition root: loads settings, configures logging, builds the database
engine, the payment outcome provider and the two core services, and mounts
the ordering and seller routers.

Usage:
    uvicorn app:create_app --factory --app-dir src --host 0.0.0.0 --port 8000
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from fulfillment.api.routes import seller_router
from fulfillment.shipment import OrderFulfillment
from ordering.api.routes import order_router
from ordering.order.creation import OrderTransactionCoordinator
from payments.gateway import PaymentOutcomeProvider, build_provider
from shared.api import install_error_handlers
from shared.config import Settings, load_settings
from shared.database import create_engine_for, is_in_memory_sqlite, make_session_factory
from shared.logging import add_context, clear_context, configure_logging

logger = structlog.get_logger(__name__)


@dataclass
class Services:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker[Session]
    coordinator: OrderTransactionCoordinator
    fulfillment: OrderFulfillment


def build_services(
    settings: Settings,
    payment_provider: PaymentOutcomeProvider | None = None,
    engine: Engine | None = None,
) -> Services:
    engine = engine or create_engine_for(settings)
    if is_in_memory_sqlite(engine.url):
        raise ValueError(
            "In-memory SQLite shares one connection between request threads; configure a file or server database"
        )
    session_factory = make_session_factory(engine)
    provider = payment_provider or build_provider(settings.payments)
    return Services(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        coordinator=OrderTransactionCoordinator(session_factory, provider, settings.lock_timeout_ms),
        fulfillment=OrderFulfillment(session_factory, settings.lock_timeout_ms),
    )


def create_app(
    settings: Settings | None = None,
    payment_provider: PaymentOutcomeProvider | None = None,
    engine: Engine | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Marketplace Order API",
        description="Order placement and seller fulfillment",
    )
    app.state.services = build_services(settings, payment_provider, engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Bind request-scoped fields into every log line of the request."""
        clear_context()
        add_context(
            request_id=request.headers.get("x-request-id") or uuid4().hex,
            user_id=request.headers.get("x-user-id"),
        )
        try:
            return await call_next(request)
        finally:
            clear_context()

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail
        if exc.status_code == 404:
            message = f"Route {request.method} {request.url.path} not found"
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": message})

    install_error_handlers(app)

    app.include_router(order_router)
    app.include_router(seller_router)

    @app.get("/api/health")
    def health() -> dict:
        return {
            "success": True,
            "message": "OK",
            "env": settings.env,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    logger.info("app_created", env=settings.env, payment_mode=settings.payments.mode)
    return app
