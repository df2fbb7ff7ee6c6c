"""
Pydantic schemas shared by the location, check-in and admin endpoints.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from queuepulse.models import QueueStage
from queuepulse.services.prediction import Trend


# Request schemas

class CheckinCreate(BaseModel):
    """Schema for submitting a check-in."""
    location_id: UUID
    device_id: str = Field(..., min_length=1, max_length=255)
    people_ahead: int = Field(..., ge=0, le=10000)
    queue_stage: Optional[QueueStage] = None


class LocationTypeCreate(BaseModel):
    """Schema for creating a location type."""
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(..., min_length=1, max_length=50)


class LocationCreate(BaseModel):
    """Schema for creating a location."""
    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., min_length=1)
    type_id: UUID
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    average_service_time: int = Field(5, ge=1, le=240)
    timezone: Optional[str] = None


# Response schemas

class LocationTypeResponse(BaseModel):
    """Location type information."""
    id: UUID
    name: str
    icon: str

    class Config:
        from_attributes = True


class LocationResponse(BaseModel):
    """Location information."""
    id: UUID
    name: str
    address: str
    type_id: UUID
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    average_service_time: Optional[int] = None
    timezone: str
    is_active: bool

    class Config:
        from_attributes = True


class CheckinResponse(BaseModel):
    """A recorded check-in."""
    id: UUID
    location_id: UUID
    people_ahead: int
    queue_stage: str
    confidence: Optional[float] = None
    created_at: datetime

    class Config:
        from_attributes = True


class QueueStatusResponse(BaseModel):
    """Current estimate for a location."""
    location: LocationResponse
    estimated_wait_time: int  # minutes
    confidence: float  # 0.1 - 0.95
    trend: Trend
    current_queue_size: int
    last_updated: datetime


class BestTimeResponse(BaseModel):
    """A quiet time to visit."""
    hour: int
    day_of_week: int  # 0=Sunday
    estimated_wait: int

    class Config:
        from_attributes = True


class TimeSlotResponse(BaseModel):
    """Historical averages for one day/hour bucket."""
    day_of_week: int
    hour: int
    average_wait_time: Optional[float] = None
    average_people_count: Optional[float] = None
    sample_count: int
    updated_at: datetime

    class Config:
        from_attributes = True


class PredictionResponse(BaseModel):
    """A stored prediction from the audit trail."""
    location_id: UUID
    estimated_wait_time: int
    confidence: Optional[float] = None
    trend: Optional[str] = None
    current_queue_size: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    """Schema for simple message responses."""
    message: str
