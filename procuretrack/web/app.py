"""FastAPI application for procuretrack."""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware

from procuretrack import __version__
from procuretrack.core.logging import configure_logging
from procuretrack.db.connection import close_db
from procuretrack.errors import (
    ConflictError,
    InternalError,
    InvalidOriginError,
    InvalidTransitionError,
    NotFoundError,
    ProcurementError,
    QuantityExceededError,
    UnknownItemError,
    ValidationError,
)
from procuretrack.web.routes import coherence, health, list_items, lists, orders, planning, quotes

# Initialize structured logging
configure_logging()
logger = structlog.get_logger()

# Most specific first
ERROR_STATUS: tuple[tuple[type[ProcurementError], int], ...] = (
    (UnknownItemError, 422),
    (InvalidTransitionError, 409),
    (ValidationError, 400),
    (NotFoundError, 404),
    (QuantityExceededError, 422),
    (InvalidOriginError, 422),
    (ConflictError, 409),
    (InternalError, 500),
)


def status_for(exc: ProcurementError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_db()


app = FastAPI(
    title="procuretrack",
    description="Equipment procurement lifecycle and quantity reconciliation API",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Request Logging Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise

        response.headers["X-Request-ID"] = request_id
        logger.info("request_completed", status_code=response.status_code)
        return response


app.add_middleware(RequestLoggingMiddleware)

# Prometheus Metrics
Instrumentator().instrument(app).expose(app)


# Exception Handlers
@app.exception_handler(ProcurementError)
async def procurement_error_handler(request: Request, exc: ProcurementError):
    """Render domain errors as {"error", "message", "details"}."""
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.info
    log("request_rejected", error=exc.code, message=exc.message, status_code=status_code)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Include Routers
app.include_router(health.router)
app.include_router(planning.router)
app.include_router(lists.router)
app.include_router(list_items.router)
app.include_router(quotes.router)
app.include_router(orders.router)
app.include_router(coherence.router)
