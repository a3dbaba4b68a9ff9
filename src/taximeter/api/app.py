"""FastAPI application factory for the fare meter."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taximeter import __version__
from taximeter.api.routes import history, rates, ride
from taximeter.core.exceptions import PersistenceError
from taximeter.meter.service import MeterService

logger = logging.getLogger(__name__)


def create_app(service: MeterService, api_key: str | None = None) -> FastAPI:
    """Create FastAPI application with injected dependencies."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Resume any interrupted ride on startup, keep it resumable on exit."""
        recovered = await service.recover()
        if recovered is not None:
            logger.info("Resumed ride %s", recovered.ride_id)
        yield
        await service.shutdown()

    app = FastAPI(
        title="Taximeter API",
        version=__version__,
        description="REST API for running the fare meter and browsing ride history",
        lifespan=lifespan,
    )

    # Set core dependencies immediately (not in lifespan) so they're available for testing
    app.state.service = service
    app.state.api_key = api_key

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": exc.message})

    app.include_router(ride.router, prefix="/ride", tags=["ride"])
    app.include_router(history.router, prefix="/rides", tags=["history"])
    app.include_router(rates.router, prefix="/rates", tags=["rates"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring."""
        return {"status": "ok", "ride_active": service.has_active_ride}

    return app
