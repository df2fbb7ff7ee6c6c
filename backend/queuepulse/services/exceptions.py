"""
Errors raised by the prediction engine and its storage collaborator.
"""

import math
import uuid


class QueuePulseError(Exception):
    """Base class for all engine errors."""


class LocationNotFound(QueuePulseError):
    """The referenced location does not exist."""

    def __init__(self, location_id: uuid.UUID):
        self.location_id = location_id
        super().__init__(f"Location {location_id} not found")


class CheckinRateLimited(QueuePulseError):
    """
    A device tried to check in again at the same location too soon.

    Carries how long the device still has to wait so callers can show
    a specific message instead of a generic failure.
    """

    def __init__(self, cooldown_minutes: int, retry_after_seconds: float):
        self.cooldown_minutes = cooldown_minutes
        self.retry_after_seconds = max(0, math.ceil(retry_after_seconds))
        super().__init__(
            f"Please wait {cooldown_minutes} minutes between check-ins at the same location"
        )


class StorageUnavailable(QueuePulseError):
    """The persistence layer failed. Never retried inside the engine."""
