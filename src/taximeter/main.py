"""
Taximeter - Unified Entry Point

Runs the fare meter behind the FastAPI control API in a single process. Ride
sessions live on the uvicorn event loop; any ride interrupted by a restart
is resumed from the SQLite store during application startup.
"""

import logging

import uvicorn

from taximeter.api.app import create_app
from taximeter.db import ActiveRideStore, init_database
from taximeter.meter.service import MeterService
from taximeter.meter_logging import setup_logging
from taximeter.settings import get_settings

logger = logging.getLogger(__name__)


def main():
    """Main entry point - initializes and runs the meter service."""
    settings = get_settings()

    setup_logging(
        level=settings.meter.log_level,
        json_output=settings.meter.log_format == "json",
    )
    logger.info("Starting taximeter service...")

    session_factory = init_database(settings.meter.db_path)
    store = ActiveRideStore(session_factory)
    service = MeterService(store, session_factory, settings)

    app = create_app(service, api_key=settings.api.key)

    logger.info("Serving taximeter API on %s:%d", settings.api.host, settings.api.port)
    uvicorn.run(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.meter.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
