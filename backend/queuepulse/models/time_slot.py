"""TimeSlot model - aggregated historical queue data per location."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from queuepulse.database import Base

DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


class TimeSlot(Base):
    """
    Running averages for one location at one day of week and hour.

    Updated incrementally on every accepted check-in, so raw history is
    never re-read. Averages are only meaningful when sample_count > 0.
    """

    __tablename__ = "time_slots"
    __table_args__ = (
        UniqueConstraint("location_id", "day_of_week", "hour", name="uq_time_slots_bucket"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    location_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("locations.id"),
        nullable=False,
        index=True,
    )

    # Time slot (0-6 for day, 0-23 for hour)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    hour: Mapped[int] = mapped_column(Integer, nullable=False)  # 0-23, location local time

    # Aggregated metrics
    average_wait_time: Mapped[float | None] = mapped_column(Float, default=0.0)
    average_people_count: Mapped[float | None] = mapped_column(Float, default=0.0)
    sample_count: Mapped[int] = mapped_column(Integer, default=0)

    # Last update
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<TimeSlot {DAY_NAMES[self.day_of_week]} {self.hour}:00 n={self.sample_count}>"
