"""Location model - physical places where people queue (banks, clinics, offices)."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from queuepulse.database import Base


class Location(Base):
    """
    A place users can check in at.

    `average_service_time` is the number of minutes each person ahead
    adds to the wait. It is the only field operators tune after creation.
    """

    __tablename__ = "locations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("location_types.id"),
        nullable=False,
        index=True,
    )

    # Stored for the map view only
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)

    average_service_time: Mapped[int | None] = mapped_column(Integer, default=5)
    # Used to work out the local day/hour bucket of a check-in
    timezone: Mapped[str] = mapped_column(String(50), default="UTC", nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    location_type: Mapped["LocationType"] = relationship(
        "LocationType",
        back_populates="locations",
    )

    def __repr__(self) -> str:
        return f"<Location {self.name}>"
