from fastapi import APIRouter, Depends, HTTPException, Response, status

from taximeter.api.auth import verify_api_key
from taximeter.api.dependencies import MeterServiceDep
from taximeter.api.models.ride import CompletedRideResponse
from taximeter.core.exceptions import NotFoundError

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.get("", response_model=list[CompletedRideResponse])
async def list_rides(service: MeterServiceDep):
    """Completed rides, newest first."""
    rides = await service.list_rides()
    return [CompletedRideResponse.from_ride(ride) for ride in rides]


@router.delete("/{ride_history_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ride(ride_history_id: int, service: MeterServiceDep):
    try:
        await service.delete_ride(ride_history_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
