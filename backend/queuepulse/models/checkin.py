"""Checkin model - anonymous queue position reports from devices."""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from queuepulse.database import Base


class QueueStage(str, Enum):
    """Where the reporting person is in the queue."""
    WAITING = "waiting"
    IN_SERVICE = "in_service"
    COMPLETING = "completing"


class Checkin(Base):
    """
    A single report of how many people are ahead in the queue.

    Check-ins are append-only. The device id is opaque and only used
    to enforce the per-location cooldown, never to identify anyone.
    """

    __tablename__ = "checkins"

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
    device_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    people_ahead: Mapped[int] = mapped_column(Integer, nullable=False)
    queue_stage: Mapped[str] = mapped_column(
        String(20),
        default=QueueStage.WAITING.value,
        nullable=False,
    )
    # Trust weight, always 1.0 for now
    confidence: Mapped[float] = mapped_column(Float, default=1.0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Checkin {self.location_id} - {self.people_ahead} ahead>"
