"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fuelops.api.deps import status_for
from fuelops.api.routes import (
    anomalies,
    audit,
    health,
    inventory,
    meters,
    prices,
    shifts,
    stations,
    transactions,
)
from fuelops.core.config import settings
from fuelops.core.database import Base, engine
from fuelops.core.errors import ServiceError
from fuelops.core.logging import configure_logging

# Import models for Base.metadata.create_all
from fuelops import models  # noqa: F401

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    configure_logging(settings)
    # Startup: Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("app.started", version=settings.VERSION)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Fuel station shift and reconciliation service",
    lifespan=lifespan,
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render lookups that could not proceed with their category's status."""
    return JSONResponse(
        status_code=status_for(exc.code),
        content={
            "detail": {
                "success": False,
                "error": exc.message,
                "error_code": exc.code.value,
            }
        },
    )


# Include API routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(stations.router, prefix="/api")
app.include_router(shifts.router, prefix="/api")
app.include_router(meters.router, prefix="/api")
app.include_router(transactions.router, prefix="/api")
app.include_router(anomalies.router, prefix="/api")
app.include_router(inventory.router, prefix="/api")
app.include_router(prices.router, prefix="/api")
app.include_router(audit.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fuelops.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
