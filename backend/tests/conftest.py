"""
Shared fixtures: an in-memory QueueStorage and a controllable clock.

The engine only talks to the QueueStorage protocol, so the whole
prediction and check-in flow runs here without a database.
"""

import uuid
from datetime import datetime, timedelta
from typing import Optional

import pytest

from queuepulse.config import Settings
from queuepulse.models import Checkin, Location, LocationType, Prediction, TimeSlot
from queuepulse.services.engine import QueueEngine

# Wednesday 14 October 2026, 10:30 UTC -> bucket (3, 10)
NOW = datetime(2026, 10, 14, 10, 30)


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += timedelta(minutes=minutes)


class InMemoryStorage:
    """QueueStorage keeping everything in lists."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.location_types: list[LocationType] = []
        self.locations: list[Location] = []
        self.checkins: list[Checkin] = []
        self.time_slots: list[TimeSlot] = []
        self.predictions: list[Prediction] = []

    async def get_location(self, location_id):
        return next((loc for loc in self.locations if loc.id == location_id), None)

    async def list_locations(self, type_id=None):
        return [
            loc for loc in self.locations
            if loc.is_active and (type_id is None or loc.type_id == type_id)
        ]

    async def create_location(
        self,
        name,
        address,
        type_id,
        average_service_time=5,
        timezone="UTC",
        latitude=None,
        longitude=None,
    ):
        location = Location(
            id=uuid.uuid4(),
            name=name,
            address=address,
            type_id=type_id,
            average_service_time=average_service_time,
            timezone=timezone,
            latitude=latitude,
            longitude=longitude,
            is_active=True,
            created_at=self.clock(),
            updated_at=self.clock(),
        )
        self.locations.append(location)
        return location

    async def list_location_types(self):
        return list(self.location_types)

    async def create_location_type(self, name, icon):
        location_type = LocationType(id=uuid.uuid4(), name=name, icon=icon, created_at=self.clock())
        self.location_types.append(location_type)
        return location_type

    async def get_recent_checkins(self, location_id, since):
        recent = [
            c for c in self.checkins
            if c.location_id == location_id and c.created_at >= since
        ]
        return sorted(recent, key=lambda c: c.created_at, reverse=True)

    async def get_last_device_checkin(self, device_id, location_id):
        mine = [
            c for c in self.checkins
            if c.device_id == device_id and c.location_id == location_id
        ]
        return max(mine, key=lambda c: c.created_at, default=None)

    async def get_device_checkins(self, device_id, limit=50):
        mine = [c for c in self.checkins if c.device_id == device_id]
        return sorted(mine, key=lambda c: c.created_at, reverse=True)[:limit]

    async def create_checkin(self, location_id, device_id, people_ahead, queue_stage):
        checkin = Checkin(
            id=uuid.uuid4(),
            location_id=location_id,
            device_id=device_id,
            people_ahead=people_ahead,
            queue_stage=queue_stage,
            confidence=1.0,
            created_at=self.clock(),
        )
        self.checkins.append(checkin)
        return checkin

    def add_checkin(self, location_id, people_ahead, minutes_ago=0.0, device_id=None, confidence=1.0):
        """Insert a check-in directly, bypassing admission control."""
        checkin = Checkin(
            id=uuid.uuid4(),
            location_id=location_id,
            device_id=device_id or f"device-{len(self.checkins)}",
            people_ahead=people_ahead,
            queue_stage="waiting",
            confidence=confidence,
            created_at=self.clock() - timedelta(minutes=minutes_ago),
        )
        self.checkins.append(checkin)
        return checkin

    async def get_time_slots(self, location_id):
        return [s for s in self.time_slots if s.location_id == location_id]

    def _find_slot(self, location_id, day_of_week, hour):
        return next(
            (
                s for s in self.time_slots
                if s.location_id == location_id and s.day_of_week == day_of_week and s.hour == hour
            ),
            None,
        )

    def _empty_slot(self, location_id, day_of_week, hour):
        slot = TimeSlot(
            id=uuid.uuid4(),
            location_id=location_id,
            day_of_week=day_of_week,
            hour=hour,
            average_wait_time=0.0,
            average_people_count=0.0,
            sample_count=0,
            updated_at=self.clock(),
        )
        self.time_slots.append(slot)
        return slot

    async def get_time_slot(self, location_id, day_of_week, hour, for_update=False):
        slot = self._find_slot(location_id, day_of_week, hour)
        if slot is None and for_update:
            # Same as DatabaseStorage: a locked read always returns a row
            slot = self._empty_slot(location_id, day_of_week, hour)
        return slot

    async def upsert_time_slot(
        self,
        location_id,
        day_of_week,
        hour,
        average_wait_time,
        average_people_count,
        sample_count,
    ):
        slot = self._find_slot(location_id, day_of_week, hour)
        if slot is None:
            slot = self._empty_slot(location_id, day_of_week, hour)

        slot.average_wait_time = average_wait_time
        slot.average_people_count = average_people_count
        slot.sample_count = sample_count
        slot.updated_at = self.clock()
        return slot

    async def create_prediction(
        self,
        location_id,
        estimated_wait_time,
        confidence,
        trend,
        current_queue_size,
    ):
        prediction = Prediction(
            id=uuid.uuid4(),
            location_id=location_id,
            estimated_wait_time=estimated_wait_time,
            confidence=confidence,
            trend=trend,
            current_queue_size=current_queue_size,
            created_at=self.clock(),
        )
        self.predictions.append(prediction)
        return prediction

    async def get_latest_prediction(self, location_id) -> Optional[Prediction]:
        mine = [p for p in self.predictions if p.location_id == location_id]
        return mine[-1] if mine else None


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        admin_api_key=None,
        live_window_minutes=60,
        checkin_cooldown_minutes=15,
        default_service_time=5,
        default_timezone="UTC",
    )


@pytest.fixture
def storage(clock):
    return InMemoryStorage(clock)


@pytest.fixture
def engine(storage, settings, clock):
    return QueueEngine(storage, settings, clock=clock)


@pytest.fixture
def location_type(storage):
    location_type = LocationType(id=uuid.uuid4(), name="Bank", icon="credit-card", created_at=NOW)
    storage.location_types.append(location_type)
    return location_type


@pytest.fixture
def location(storage, location_type):
    location = Location(
        id=uuid.uuid4(),
        name="First National Bank - Downtown",
        address="123 Main Street, Downtown",
        type_id=location_type.id,
        average_service_time=5,
        timezone="UTC",
        is_active=True,
        created_at=NOW,
        updated_at=NOW,
    )
    storage.locations.append(location)
    return location


def make_slot(location_id, day_of_week, hour, average_wait_time, average_people_count, sample_count):
    """Build a TimeSlot for tests."""
    return TimeSlot(
        id=uuid.uuid4(),
        location_id=location_id,
        day_of_week=day_of_week,
        hour=hour,
        average_wait_time=average_wait_time,
        average_people_count=average_people_count,
        sample_count=sample_count,
        updated_at=NOW,
    )
