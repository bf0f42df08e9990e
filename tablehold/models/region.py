"""Region model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tablehold.models.base import Base

if TYPE_CHECKING:
    from tablehold.models.reservation import Reservation


class Region(Base):
    """A zone of the venue with its own table count and seating policy."""

    __tablename__ = "regions"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity_per_table: Mapped[int] = mapped_column(Integer, nullable=False)
    table_count: Mapped[int] = mapped_column(Integer, nullable=False)
    allow_children: Mapped[bool] = mapped_column(Boolean, default=True)
    allow_smoking: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )

    # Relationships
    reservations: Mapped[list["Reservation"]] = relationship(
        "Reservation", back_populates="region"
    )

    __table_args__ = (
        CheckConstraint("table_count >= 1", name="ck_region_table_count"),
        CheckConstraint("capacity_per_table >= 1", name="ck_region_capacity"),
    )
