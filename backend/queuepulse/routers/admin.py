"""
Admin API endpoints for managing locations.

When `ADMIN_API_KEY` is configured, every endpoint requires a matching
`X-Admin-API-Key` header.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from queuepulse.config import get_settings
from queuepulse.dependencies import get_storage, verify_admin_access
from queuepulse.schemas.queue import (
    LocationCreate,
    LocationResponse,
    LocationTypeCreate,
    LocationTypeResponse,
    MessageResponse,
)
from queuepulse.services.seed import seed_sample_data
from queuepulse.services.storage import QueueStorage
from queuepulse.utils.timezone import is_valid_timezone

router = APIRouter(dependencies=[Depends(verify_admin_access)])


@router.post("/seed", response_model=MessageResponse)
async def seed_data(
    storage: QueueStorage = Depends(get_storage),
):
    """
    Create sample location types and locations.

    Safe to call repeatedly: does nothing once location types exist.
    """
    created = await seed_sample_data(storage, timezone=get_settings().default_timezone)
    if not created:
        return MessageResponse(message="Data already seeded")
    return MessageResponse(message="Seed data created successfully")


@router.post(
    "/location-types",
    response_model=LocationTypeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_location_type(
    data: LocationTypeCreate,
    storage: QueueStorage = Depends(get_storage),
):
    """
    Create a new location type.
    """
    return await storage.create_location_type(name=data.name, icon=data.icon)


@router.post(
    "/locations",
    response_model=LocationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_location(
    data: LocationCreate,
    storage: QueueStorage = Depends(get_storage),
):
    """
    Create a new location.

    Timezone defaults to the configured default and must be a valid
    IANA name, since it decides which hour a check-in counts towards.
    """
    timezone = data.timezone or get_settings().default_timezone
    if not is_valid_timezone(timezone):
        raise HTTPException(status_code=400, detail=f"Unknown timezone: {timezone}")

    return await storage.create_location(
        name=data.name,
        address=data.address,
        type_id=data.type_id,
        average_service_time=data.average_service_time,
        timezone=timezone,
        latitude=data.latitude,
        longitude=data.longitude,
    )
