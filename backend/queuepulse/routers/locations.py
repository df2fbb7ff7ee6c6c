"""
Location API endpoints.

Public endpoints for mobile apps: browse locations, get the live
queue estimate, historical pattern and best times to visit.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from queuepulse.dependencies import get_engine, get_storage
from queuepulse.schemas.queue import (
    BestTimeResponse,
    LocationResponse,
    LocationTypeResponse,
    PredictionResponse,
    QueueStatusResponse,
    TimeSlotResponse,
)
from queuepulse.services.engine import QueueEngine
from queuepulse.services.storage import QueueStorage

router = APIRouter()


async def _get_location_or_404(storage: QueueStorage, location_id: uuid.UUID):
    location = await storage.get_location(location_id)
    if not location:
        raise HTTPException(status_code=404, detail="Location not found")
    return location


# =============================================================================
# Location Endpoints
# =============================================================================

@router.get("/location-types", response_model=list[LocationTypeResponse])
async def list_location_types(
    storage: QueueStorage = Depends(get_storage),
):
    """
    List all location categories.
    """
    return await storage.list_location_types()


@router.get("/locations", response_model=list[LocationResponse])
async def list_locations(
    type_id: Optional[uuid.UUID] = None,
    storage: QueueStorage = Depends(get_storage),
):
    """
    List active locations, optionally filtered by location type.
    """
    return await storage.list_locations(type_id)


@router.get("/locations/{location_id}", response_model=LocationResponse)
async def get_location(
    location_id: uuid.UUID,
    storage: QueueStorage = Depends(get_storage),
):
    """
    Get a specific location.
    """
    return await _get_location_or_404(storage, location_id)


# =============================================================================
# Queue Estimate Endpoints
# =============================================================================

@router.get("/locations/{location_id}/queue-status", response_model=QueueStatusResponse)
async def get_queue_status(
    location_id: uuid.UUID,
    storage: QueueStorage = Depends(get_storage),
    engine: QueueEngine = Depends(get_engine),
):
    """
    Get the current wait-time estimate for a location.

    Blends recent check-ins with the historical average for the current
    day and hour. Every call is recorded in the prediction history.
    """
    location = await _get_location_or_404(storage, location_id)
    prediction = await engine.calculate_prediction(location_id)

    return QueueStatusResponse(
        location=LocationResponse.model_validate(location),
        estimated_wait_time=prediction.estimated_wait_time,
        confidence=prediction.confidence,
        trend=prediction.trend,
        current_queue_size=prediction.current_queue_size,
        last_updated=engine.clock(),
    )


@router.get("/locations/{location_id}/best-time", response_model=list[BestTimeResponse])
async def get_best_time(
    location_id: uuid.UUID,
    engine: QueueEngine = Depends(get_engine),
):
    """
    Get up to five historically quietest times to visit.

    Only time slots with at least two check-ins are considered.
    """
    return await engine.best_time_to_visit(location_id)


@router.get("/locations/{location_id}/history", response_model=list[TimeSlotResponse])
async def get_history(
    location_id: uuid.UUID,
    storage: QueueStorage = Depends(get_storage),
):
    """
    Get the weekly pattern (all day/hour time slots) for a location.

    Used by the mobile heatmap.
    """
    return await storage.get_time_slots(location_id)


@router.get("/locations/{location_id}/predictions/latest", response_model=PredictionResponse)
async def get_latest_prediction(
    location_id: uuid.UUID,
    storage: QueueStorage = Depends(get_storage),
):
    """
    Get the most recently recorded prediction without computing a new one.
    """
    prediction = await storage.get_latest_prediction(location_id)
    if not prediction:
        raise HTTPException(status_code=404, detail="No prediction recorded")
    return prediction
