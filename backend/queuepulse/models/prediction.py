"""Prediction model - audit trail of computed wait-time estimates."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from queuepulse.database import Base


class Prediction(Base):
    """
    Point-in-time snapshot of an estimate served to a client.

    Written once per computation and never updated.
    """

    __tablename__ = "predictions"

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

    estimated_wait_time: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes
    confidence: Mapped[float] = mapped_column(Float, default=0.5)
    trend: Mapped[str] = mapped_column(String(20), default="stable")
    current_queue_size: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Prediction {self.location_id} - {self.estimated_wait_time}min ({self.trend})>"
