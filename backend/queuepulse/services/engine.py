"""
Queue engine - orchestrates predictions and check-ins.

Reads from and writes to an injected `QueueStorage`; all of the math is
in `queuepulse.services.prediction`.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Optional

from queuepulse.config import Settings, get_settings
from queuepulse.models import Checkin, Location, QueueStage, TimeSlot
from queuepulse.services.exceptions import CheckinRateLimited, LocationNotFound
from queuepulse.services.prediction import (
    BestTime,
    PredictionResult,
    Trend,
    blend,
    calculate_historical_signal,
    calculate_live_signal,
    fold_into_slot,
    rank_best_times,
)
from queuepulse.services.storage import QueueStorage
from queuepulse.utils.timezone import local_time_slot, utc_now

logger = logging.getLogger(__name__)


def check_admission(
    last_checkin_at: Optional[datetime],
    now: datetime,
    cooldown: timedelta,
) -> Optional[timedelta]:
    """
    Decide whether a device may check in again.

    Args:
        last_checkin_at: When the device last checked in at this location
        now: Current time
        cooldown: Minimum gap between check-ins

    Returns:
        None when the check-in is allowed, otherwise the time left to wait
    """
    if last_checkin_at is None:
        return None

    if last_checkin_at >= now - cooldown:
        return last_checkin_at + cooldown - now
    return None


def _mask_device(device_id: str) -> str:
    return device_id[:4] + "..." if len(device_id) > 4 else "..."


class QueueEngine:
    """
    Prediction engine for one storage handle.

    Args:
        storage: Persistence collaborator
        settings: Engine tunables (windows, cooldown, defaults)
        clock: Returns the current naive UTC time
    """

    def __init__(
        self,
        storage: QueueStorage,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.storage = storage
        self.settings = settings or get_settings()
        self.clock = clock

    def service_time(self, location: Location) -> int:
        """Minutes per person ahead, falling back to the configured default."""
        return location.average_service_time or self.settings.default_service_time

    def _location_timezone(self, location: Location) -> str:
        return location.timezone or self.settings.default_timezone

    # -------------------------------------------------------------------------
    # Predictions
    # -------------------------------------------------------------------------

    async def calculate_prediction(self, location_id: uuid.UUID) -> PredictionResult:
        """
        Compute the current estimate for a location and record it.

        Unknown locations get a zeroed, zero-confidence result and no
        audit record: having no prediction is normal for new locations.
        """
        location = await self.storage.get_location(location_id)
        if location is None:
            return PredictionResult(
                estimated_wait_time=0,
                confidence=0.0,
                trend=Trend.STABLE,
                current_queue_size=0,
            )

        now = self.clock()
        recent_checkins = await self.storage.get_recent_checkins(
            location_id, now - timedelta(minutes=self.settings.live_window_minutes)
        )
        day_of_week, hour = local_time_slot(now, self._location_timezone(location))
        slot = await self.storage.get_time_slot(location_id, day_of_week, hour)

        live = calculate_live_signal(recent_checkins, now)
        historical = calculate_historical_signal(slot)
        result = blend(live, historical, self.service_time(location))

        await self.storage.create_prediction(
            location_id=location_id,
            estimated_wait_time=result.estimated_wait_time,
            confidence=result.confidence,
            trend=result.trend.value,
            current_queue_size=result.current_queue_size,
        )

        logger.debug(
            "Prediction for %s: %d min, confidence %.2f, %s (live n=%d, slot n=%d)",
            location_id,
            result.estimated_wait_time,
            result.confidence,
            result.trend.value,
            len(recent_checkins),
            slot.sample_count if slot else 0,
        )
        return result

    async def best_time_to_visit(self, location_id: uuid.UUID) -> list[BestTime]:
        """Up to five quietest time slots with at least two samples."""
        slots = await self.storage.get_time_slots(location_id)
        return rank_best_times(slots)

    # -------------------------------------------------------------------------
    # Check-ins
    # -------------------------------------------------------------------------

    async def can_device_checkin(self, device_id: str, location_id: uuid.UUID) -> bool:
        """Whether the device is outside its cooldown at this location."""
        return await self._remaining_cooldown(device_id, location_id) is None

    async def _remaining_cooldown(
        self, device_id: str, location_id: uuid.UUID
    ) -> Optional[timedelta]:
        last = await self.storage.get_last_device_checkin(device_id, location_id)
        return check_admission(
            last.created_at if last else None,
            self.clock(),
            timedelta(minutes=self.settings.checkin_cooldown_minutes),
        )

    async def record_checkin(
        self,
        location_id: uuid.UUID,
        device_id: str,
        people_ahead: int,
        queue_stage: Optional[str] = None,
    ) -> Checkin:
        """
        Accept a check-in and fold it into the historical time slot.

        Raises:
            LocationNotFound: The location does not exist
            CheckinRateLimited: The device checked in here too recently
        """
        location = await self.storage.get_location(location_id)
        if location is None:
            raise LocationNotFound(location_id)

        remaining = await self._remaining_cooldown(device_id, location_id)
        if remaining is not None:
            logger.warning(
                "Check-in rejected for device %s at %s: %ds of cooldown left",
                _mask_device(device_id),
                location_id,
                int(remaining.total_seconds()),
            )
            raise CheckinRateLimited(
                self.settings.checkin_cooldown_minutes,
                remaining.total_seconds(),
            )

        checkin = await self.storage.create_checkin(
            location_id=location_id,
            device_id=device_id,
            people_ahead=people_ahead,
            queue_stage=queue_stage or QueueStage.WAITING.value,
        )

        await self.update_time_slot(location, people_ahead, checkin.created_at)

        logger.debug("Check-in at %s: %d ahead", location_id, people_ahead)
        return checkin

    async def update_time_slot(
        self,
        location: Location,
        people_ahead: int,
        at: Optional[datetime] = None,
    ) -> TimeSlot:
        """Fold an observation into the slot of its local day and hour."""
        at = at or self.clock()
        day_of_week, hour = local_time_slot(at, self._location_timezone(location))

        existing = await self.storage.get_time_slot(
            location.id, day_of_week, hour, for_update=True
        )
        update = fold_into_slot(existing, people_ahead, self.service_time(location))

        return await self.storage.upsert_time_slot(
            location_id=location.id,
            day_of_week=day_of_week,
            hour=hour,
            average_wait_time=update.average_wait_time,
            average_people_count=update.average_people_count,
            sample_count=update.sample_count,
        )
