"""LocationType model - categories of locations (Bank, Hospital, etc.)"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from queuepulse.database import Base


class LocationType(Base):
    """
    Category of a location.

    The icon name is passed through to the mobile client as-is.
    """

    __tablename__ = "location_types"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    locations: Mapped[list["Location"]] = relationship(
        "Location",
        back_populates="location_type",
    )

    def __repr__(self) -> str:
        return f"<LocationType {self.name}>"
