"""GallopMart Subscriptions - Main FastAPI Application."""

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from adapters.payments import RazorpayAuthError, RazorpayError
from api.middleware.rate_limit import limiter
from api.routes import api_router
from core.exceptions import GallopMartError
from core.plans import PLAN_TABLE_VERSION
from infrastructure.config import get_settings
from infrastructure.database import (
    SqlPaymentRepository,
    SqlSellerRepository,
    SqlSubscriptionRepository,
    close_db,
    get_db_context,
    init_db,
)
from infrastructure.logging_config import setup_logging
from services.subscription_service import SubscriptionService

settings = get_settings()
logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 64 * 1024
UNLOGGED_PREFIX = "/api/v1/health"


async def run_expiry_sweep() -> int:
    """Run one expiry sweep in its own session."""
    async with get_db_context() as db:
        service = SubscriptionService(
            db=db,
            sellers=SqlSellerRepository(db),
            subscriptions=SqlSubscriptionRepository(db),
            ledger=SqlPaymentRepository(db),
        )
        return await service.expire_lapsed_subscriptions(
            batch_size=settings.expiry_sweep_batch_size
        )


async def _expiry_sweep_loop(interval: int) -> None:
    """Persist lapsed subscriptions every ``interval`` seconds.

    Reads already apply expiry lazily, so a failed sweep is logged and retried
    on the next tick.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            updated = await run_expiry_sweep()
        except Exception as sweep_err:
            logger.warning("Expiry sweep failed: %s", sweep_err)
            continue
        if updated:
            logger.info("Expiry sweep: %d subscriptions updated", updated)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    setup_logging(
        json_output=not settings.debug and settings.is_production,
        level="DEBUG" if settings.debug else "INFO",
    )
    settings.validate_production_secrets()

    logger.info(
        "Starting %s v%s (%s, plan table v%d, payments %s)",
        settings.app_name,
        settings.app_version,
        settings.environment,
        PLAN_TABLE_VERSION,
        "test mode" if settings.payment_test_mode else "live",
    )

    if settings.is_development:
        await init_db()

    sweep_task = None
    if settings.expiry_sweep_interval_seconds > 0:
        sweep_task = asyncio.create_task(
            _expiry_sweep_loop(settings.expiry_sweep_interval_seconds),
            name="expiry-sweep",
        )

    yield

    if sweep_task is not None:
        sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweep_task

    await close_db()
    logger.info("Application stopped.")


app = FastAPI(
    title=settings.app_name,
    description="Seller subscription plans, listing quotas and badges for GallopMart",
    version=settings.app_version,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

# SlowAPIMiddleware applies the default limit; @limiter.limit overrides per route
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(GallopMartError)
async def gallopmart_error_handler(request: Request, exc: GallopMartError):
    logger.info(
        "Request rejected: %s (%s)",
        exc.message,
        exc.code,
        extra={"path": request.url.path, "status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(RazorpayError)
async def payment_gateway_error_handler(request: Request, exc: RazorpayError):
    logger.error("Payment gateway error: %s", exc)
    return JSONResponse(
        status_code=503 if isinstance(exc, RazorpayAuthError) else 502,
        content={"detail": "Payment gateway unavailable", "code": "payment_gateway_error"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    if settings.is_production:
        logger.error("Unhandled exception: %s: %s", type(exc).__name__, str(exc)[:200])
    else:
        logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def _request_id_from(request: Request) -> str:
    # Caller ids are echoed into logs, so only well-formed UUIDs are kept
    incoming = request.headers.get("X-Request-ID")
    if incoming:
        with suppress(ValueError):
            return str(uuid.UUID(incoming))
    return str(uuid.uuid4())


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Reject oversized bodies, tag the request with an id and log its outcome."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > MAX_BODY_BYTES:
        return JSONResponse(
            status_code=413,
            content={"detail": "Request body too large (max 64KB)"},
        )

    request_id = _request_id_from(request)
    request.state.request_id = request_id
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - start) * 1000, 1)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Response-Time"] = f"{duration_ms}ms"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    path = request.url.path
    if not path.startswith(UNLOGGED_PREFIX):
        logger.info(
            "%s %s %s %.1fms",
            request.method,
            path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "seller_id": request.headers.get("X-Seller-ID"),
            },
        )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID", "X-Seller-ID", "X-Admin-Key"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "plans": "/api/v1/plans",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        workers=settings.workers if not settings.is_development else 1,
    )
