"""
Check-in API endpoints.

Devices report how many people are ahead of them. Each device can check
in at a given location once every cooldown period.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from queuepulse.dependencies import get_engine, get_storage
from queuepulse.schemas.queue import CheckinCreate, CheckinResponse
from queuepulse.services.engine import QueueEngine
from queuepulse.services.exceptions import CheckinRateLimited, LocationNotFound
from queuepulse.services.storage import QueueStorage

router = APIRouter()


@router.post("/checkin", response_model=CheckinResponse, status_code=status.HTTP_201_CREATED)
async def create_checkin(
    request: CheckinCreate,
    engine: QueueEngine = Depends(get_engine),
):
    """
    Submit a check-in.

    Returns 429 if this device already checked in at this location
    within the cooldown period.
    """
    try:
        checkin = await engine.record_checkin(
            location_id=request.location_id,
            device_id=request.device_id,
            people_ahead=request.people_ahead,
            queue_stage=request.queue_stage.value if request.queue_stage else None,
        )
    except LocationNotFound:
        raise HTTPException(status_code=404, detail="Location not found")
    except CheckinRateLimited as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=str(e),
            headers={"Retry-After": str(e.retry_after_seconds)},
        )

    return checkin


@router.get("/checkins/device/{device_id}", response_model=list[CheckinResponse])
async def list_device_checkins(
    device_id: str,
    storage: QueueStorage = Depends(get_storage),
):
    """
    List the most recent check-ins submitted by a device.
    """
    return await storage.get_device_checkins(device_id)
