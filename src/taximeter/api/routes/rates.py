from fastapi import APIRouter, Depends

from taximeter.api.auth import verify_api_key
from taximeter.api.dependencies import MeterServiceDep
from taximeter.meter.models import RateConfiguration

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.get("", response_model=RateConfiguration)
async def get_rates(service: MeterServiceDep):
    """Tariff applied to the next ride started."""
    return await service.get_rates()


@router.put("", response_model=RateConfiguration)
async def update_rates(rates: RateConfiguration, service: MeterServiceDep):
    """Replace the saved tariff. A ride already in progress keeps its rates."""
    return await service.update_rates(rates)
