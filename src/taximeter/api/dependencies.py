"""FastAPI dependency injection providers."""

from typing import Annotated

from fastapi import Depends, Request

from taximeter.meter.service import MeterService


def get_meter_service(request: Request) -> MeterService:
    """Retrieve MeterService from app state."""
    return request.app.state.service


MeterServiceDep = Annotated[MeterService, Depends(get_meter_service)]
