"""
Storage collaborator for the prediction engine.

`QueueStorage` is the interface the engine depends on. `DatabaseStorage`
implements it on top of an async SQLAlchemy session; it only flushes,
the request-scoped session from `get_db` owns the commit.

Time slot updates are read-modify-write. To keep concurrent check-ins
from racing on the same bucket, the engine reads with `for_update=True`
(row lock held until the request transaction ends) and the write is an
INSERT ... ON CONFLICT DO UPDATE on the bucket's unique constraint.
A locked read of a missing bucket first inserts an empty one
(sample_count=0), so the lock always covers a row.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from queuepulse.models import Checkin, Location, LocationType, Prediction, TimeSlot
from queuepulse.services.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)

DEVICE_HISTORY_LIMIT = 50
SLOT_BUCKET_CONSTRAINT = "uq_time_slots_bucket"


class QueueStorage(Protocol):
    """Persistence operations the engine and routers rely on."""

    async def get_location(self, location_id: uuid.UUID) -> Optional[Location]: ...

    async def list_locations(self, type_id: Optional[uuid.UUID] = None) -> list[Location]: ...

    async def create_location(
        self,
        name: str,
        address: str,
        type_id: uuid.UUID,
        average_service_time: int = 5,
        timezone: str = "UTC",
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> Location: ...

    async def list_location_types(self) -> list[LocationType]: ...

    async def create_location_type(self, name: str, icon: str) -> LocationType: ...

    async def get_recent_checkins(
        self, location_id: uuid.UUID, since: datetime
    ) -> list[Checkin]: ...

    async def get_last_device_checkin(
        self, device_id: str, location_id: uuid.UUID
    ) -> Optional[Checkin]: ...

    async def get_device_checkins(
        self, device_id: str, limit: int = DEVICE_HISTORY_LIMIT
    ) -> list[Checkin]: ...

    async def create_checkin(
        self,
        location_id: uuid.UUID,
        device_id: str,
        people_ahead: int,
        queue_stage: str,
    ) -> Checkin: ...

    async def get_time_slots(self, location_id: uuid.UUID) -> list[TimeSlot]: ...

    async def get_time_slot(
        self,
        location_id: uuid.UUID,
        day_of_week: int,
        hour: int,
        for_update: bool = False,
    ) -> Optional[TimeSlot]: ...

    async def upsert_time_slot(
        self,
        location_id: uuid.UUID,
        day_of_week: int,
        hour: int,
        average_wait_time: float,
        average_people_count: float,
        sample_count: int,
    ) -> TimeSlot: ...

    async def create_prediction(
        self,
        location_id: uuid.UUID,
        estimated_wait_time: int,
        confidence: float,
        trend: str,
        current_queue_size: int,
    ) -> Prediction: ...

    async def get_latest_prediction(self, location_id: uuid.UUID) -> Optional[Prediction]: ...


@contextmanager
def _storage_errors(operation: str):
    """Translate driver and connection failures into StorageUnavailable."""
    try:
        yield
    except (SQLAlchemyError, OSError) as e:
        logger.error("Storage failure during %s: %s", operation, e)
        raise StorageUnavailable(f"Storage failure during {operation}") from e


def empty_slot_statement(location_id: uuid.UUID, day_of_week: int, hour: int):
    """INSERT an empty bucket, leaving an existing one untouched."""
    return insert(TimeSlot).values(
        id=uuid.uuid4(),
        location_id=location_id,
        day_of_week=day_of_week,
        hour=hour,
        average_wait_time=0.0,
        average_people_count=0.0,
        sample_count=0,
        updated_at=datetime.utcnow(),
    ).on_conflict_do_nothing(constraint=SLOT_BUCKET_CONSTRAINT)


def upsert_slot_statement(
    location_id: uuid.UUID,
    day_of_week: int,
    hour: int,
    average_wait_time: float,
    average_people_count: float,
    sample_count: int,
):
    """INSERT ... ON CONFLICT DO UPDATE for one bucket, returning the row."""
    stmt = insert(TimeSlot).values(
        id=uuid.uuid4(),
        location_id=location_id,
        day_of_week=day_of_week,
        hour=hour,
        average_wait_time=average_wait_time,
        average_people_count=average_people_count,
        sample_count=sample_count,
        updated_at=datetime.utcnow(),
    )
    return stmt.on_conflict_do_update(
        constraint=SLOT_BUCKET_CONSTRAINT,
        set_={
            "average_wait_time": stmt.excluded.average_wait_time,
            "average_people_count": stmt.excluded.average_people_count,
            "sample_count": stmt.excluded.sample_count,
            "updated_at": stmt.excluded.updated_at,
        },
    ).returning(TimeSlot)


class DatabaseStorage:
    """QueueStorage backed by PostgreSQL through an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # -------------------------------------------------------------------------
    # Locations
    # -------------------------------------------------------------------------

    async def get_location(self, location_id: uuid.UUID) -> Optional[Location]:
        with _storage_errors("get_location"):
            result = await self.db.execute(
                select(Location).where(Location.id == location_id)
            )
            return result.scalar_one_or_none()

    async def list_locations(self, type_id: Optional[uuid.UUID] = None) -> list[Location]:
        query = select(Location).where(Location.is_active == True)
        if type_id:
            query = query.where(Location.type_id == type_id)
        query = query.order_by(Location.name)

        with _storage_errors("list_locations"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def create_location(
        self,
        name: str,
        address: str,
        type_id: uuid.UUID,
        average_service_time: int = 5,
        timezone: str = "UTC",
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> Location:
        location = Location(
            name=name,
            address=address,
            type_id=type_id,
            average_service_time=average_service_time,
            timezone=timezone,
            latitude=latitude,
            longitude=longitude,
        )
        with _storage_errors("create_location"):
            self.db.add(location)
            await self.db.flush()
            await self.db.refresh(location)
        return location

    async def list_location_types(self) -> list[LocationType]:
        with _storage_errors("list_location_types"):
            result = await self.db.execute(
                select(LocationType).order_by(LocationType.name)
            )
            return list(result.scalars().all())

    async def create_location_type(self, name: str, icon: str) -> LocationType:
        location_type = LocationType(name=name, icon=icon)
        with _storage_errors("create_location_type"):
            self.db.add(location_type)
            await self.db.flush()
            await self.db.refresh(location_type)
        return location_type

    # -------------------------------------------------------------------------
    # Check-ins
    # -------------------------------------------------------------------------

    async def get_recent_checkins(
        self, location_id: uuid.UUID, since: datetime
    ) -> list[Checkin]:
        with _storage_errors("get_recent_checkins"):
            result = await self.db.execute(
                select(Checkin)
                .where(
                    Checkin.location_id == location_id,
                    Checkin.created_at >= since,
                )
                .order_by(Checkin.created_at.desc())
            )
            return list(result.scalars().all())

    async def get_last_device_checkin(
        self, device_id: str, location_id: uuid.UUID
    ) -> Optional[Checkin]:
        with _storage_errors("get_last_device_checkin"):
            result = await self.db.execute(
                select(Checkin)
                .where(
                    Checkin.device_id == device_id,
                    Checkin.location_id == location_id,
                )
                .order_by(Checkin.created_at.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def get_device_checkins(
        self, device_id: str, limit: int = DEVICE_HISTORY_LIMIT
    ) -> list[Checkin]:
        with _storage_errors("get_device_checkins"):
            result = await self.db.execute(
                select(Checkin)
                .where(Checkin.device_id == device_id)
                .order_by(Checkin.created_at.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def create_checkin(
        self,
        location_id: uuid.UUID,
        device_id: str,
        people_ahead: int,
        queue_stage: str,
    ) -> Checkin:
        checkin = Checkin(
            location_id=location_id,
            device_id=device_id,
            people_ahead=people_ahead,
            queue_stage=queue_stage,
            confidence=1.0,
        )
        with _storage_errors("create_checkin"):
            self.db.add(checkin)
            await self.db.flush()
            await self.db.refresh(checkin)
        return checkin

    # -------------------------------------------------------------------------
    # Time slots
    # -------------------------------------------------------------------------

    async def get_time_slots(self, location_id: uuid.UUID) -> list[TimeSlot]:
        with _storage_errors("get_time_slots"):
            result = await self.db.execute(
                select(TimeSlot)
                .where(TimeSlot.location_id == location_id)
                .order_by(TimeSlot.day_of_week, TimeSlot.hour)
            )
            return list(result.scalars().all())

    async def get_time_slot(
        self,
        location_id: uuid.UUID,
        day_of_week: int,
        hour: int,
        for_update: bool = False,
    ) -> Optional[TimeSlot]:
        """
        Read one bucket.

        With `for_update=True` the row is locked until the transaction
        ends. A missing bucket is created empty first, then re-read under
        the lock.
        """
        query = select(TimeSlot).where(
            TimeSlot.location_id == location_id,
            TimeSlot.day_of_week == day_of_week,
            TimeSlot.hour == hour,
        )
        if not for_update:
            with _storage_errors("get_time_slot"):
                result = await self.db.execute(query)
                return result.scalar_one_or_none()

        query = query.with_for_update().execution_options(populate_existing=True)

        with _storage_errors("get_time_slot"):
            result = await self.db.execute(query)
            slot = result.scalar_one_or_none()
            if slot is not None:
                return slot

            await self.db.execute(
                empty_slot_statement(location_id, day_of_week, hour)
            )
            result = await self.db.execute(query)
            return result.scalar_one()

    async def upsert_time_slot(
        self,
        location_id: uuid.UUID,
        day_of_week: int,
        hour: int,
        average_wait_time: float,
        average_people_count: float,
        sample_count: int,
    ) -> TimeSlot:
        stmt = upsert_slot_statement(
            location_id,
            day_of_week,
            hour,
            average_wait_time,
            average_people_count,
            sample_count,
        )

        with _storage_errors("upsert_time_slot"):
            result = await self.db.execute(
                stmt, execution_options={"populate_existing": True}
            )
            return result.scalar_one()

    # -------------------------------------------------------------------------
    # Predictions
    # -------------------------------------------------------------------------

    async def create_prediction(
        self,
        location_id: uuid.UUID,
        estimated_wait_time: int,
        confidence: float,
        trend: str,
        current_queue_size: int,
    ) -> Prediction:
        prediction = Prediction(
            location_id=location_id,
            estimated_wait_time=estimated_wait_time,
            confidence=confidence,
            trend=trend,
            current_queue_size=current_queue_size,
        )
        with _storage_errors("create_prediction"):
            self.db.add(prediction)
            await self.db.flush()
        return prediction

    async def get_latest_prediction(self, location_id: uuid.UUID) -> Optional[Prediction]:
        with _storage_errors("get_latest_prediction"):
            result = await self.db.execute(
                select(Prediction)
                .where(Prediction.location_id == location_id)
                .order_by(Prediction.created_at.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()
