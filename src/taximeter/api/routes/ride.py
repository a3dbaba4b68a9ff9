from fastapi import APIRouter, Depends, HTTPException, status

from taximeter.api.auth import verify_api_key
from taximeter.api.dependencies import MeterServiceDep
from taximeter.api.models.ride import (
    CompletedRideResponse,
    FixBatchRequest,
    QueuedResponse,
    RideStateResponse,
    RideStatusResponse,
    SignalRequest,
)
from taximeter.core.exceptions import StateError

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.get("", response_model=RideStatusResponse)
def get_ride(service: MeterServiceDep):
    """Current ride as displayed by the meter, or inactive when idle."""
    state = service.current_state()
    if state is None:
        return RideStatusResponse(active=False)
    return RideStatusResponse(active=True, ride=RideStateResponse.from_state(state))


@router.post("/start", response_model=RideStateResponse)
async def start_ride(service: MeterServiceDep):
    try:
        state = await service.start_ride()
    except StateError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    return RideStateResponse.from_state(state)


@router.post("/pause", response_model=RideStateResponse)
async def pause_ride(service: MeterServiceDep):
    try:
        state = await service.pause()
    except StateError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    return RideStateResponse.from_state(state)


@router.post("/resume", response_model=RideStateResponse)
async def resume_ride(service: MeterServiceDep):
    try:
        state = await service.resume()
    except StateError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    return RideStateResponse.from_state(state)


@router.post("/waiting", response_model=RideStateResponse)
async def toggle_waiting_mode(service: MeterServiceDep):
    """Flip waiting mode on or off."""
    try:
        state = await service.toggle_waiting_mode()
    except StateError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    return RideStateResponse.from_state(state)


@router.post("/stop", response_model=CompletedRideResponse)
async def stop_ride(service: MeterServiceDep):
    try:
        ride = await service.stop_ride()
    except StateError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    return CompletedRideResponse.from_ride(ride)


@router.post("/fixes", response_model=QueuedResponse, status_code=status.HTTP_202_ACCEPTED)
def submit_fixes(request: FixBatchRequest, service: MeterServiceDep):
    """Queue raw location fixes in the order given."""
    try:
        for fix in request.fixes:
            service.submit_fix(fix)
    except StateError as e:
        raise HTTPException(status_code=409, detail=e.message) from e
    return QueuedResponse(queued=len(request.fixes))


@router.post("/signal", response_model=QueuedResponse, status_code=status.HTTP_202_ACCEPTED)
def report_signal(request: SignalRequest, service: MeterServiceDep):
    """Report a location source status such as permission denied or signal lost."""
    try:
        service.report_signal(request.status)
    except StateError as e:
        raise HTTPException(status_code=409, detail=e.message) from e
    return QueuedResponse(queued=1)
