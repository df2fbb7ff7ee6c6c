# Database models
from queuepulse.models.location_type import LocationType
from queuepulse.models.location import Location
from queuepulse.models.checkin import Checkin, QueueStage
from queuepulse.models.time_slot import TimeSlot
from queuepulse.models.prediction import Prediction

__all__ = [
    "LocationType",
    "Location",
    "Checkin",
    "QueueStage",
    "TimeSlot",
    "Prediction",
]
