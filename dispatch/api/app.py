"""
FastAPI application factory.

* Registers routes for trips, customers, drivers, reconciliation,
  public tracking and admin.
* Translates ``DispatchError`` subclasses into JSON error responses.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from dispatch.api.middleware import limiter
from dispatch.api.routes import (
    admin,
    customers,
    drivers,
    reconciliation,
    tracking,
    trips,
)
from dispatch.config import settings
from dispatch.domain.errors import (
    DataAccessError,
    DispatchError,
    NotFound,
    SettlementInProgress,
    StaleTripError,
    TransitionError,
    ValidationError,
)
from dispatch.infrastructure.redis_client import close_redis

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[DispatchError], int] = {
    ValidationError: 422,
    NotFound: 404,
    TransitionError: 409,
    StaleTripError: 409,
    SettlementInProgress: 409,
    DataAccessError: 503,
}


async def dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 400
    )
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Dispatch API starting")
    yield
    await close_redis()
    logger.info("Dispatch API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Cargo Dispatch API",
        description=(
            "Logs cargo-trip requests, matches them to drivers, tracks each "
            "trip from Pending to Completed, checks two-sided payment "
            "verification and reconciles the platform commission each "
            "driver owes."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(DispatchError, dispatch_error_handler)

    # Routers
    for module in (trips, customers, drivers, reconciliation, tracking, admin):
        app.include_router(module.router, prefix="/api/v1")

    return app
