"""Reservation models.

A reservation row lives in one of two phases. While HELD it carries only
the session token and expiry of the hold; once CONFIRMED it carries the
customer details instead. Both phases share one table and are mapped as
single-table inheritance on ``status`` so that each phase exposes only its
own fields.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tablehold.models.base import Base
from tablehold.models.region import Region


class ReservationStatus(str, enum.Enum):
    """Reservation status enum."""

    HELD = "HELD"
    CONFIRMED = "CONFIRMED"


class Reservation(Base):
    """Common identity of a hold or a confirmed booking."""

    __tablename__ = "reservations"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    reservation_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    time_slot: Mapped[str] = mapped_column(String(5), nullable=False)
    region_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("regions.id"), nullable=False
    )
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
    )

    # Relationships
    region: Mapped[Region] = relationship(
        "Region", back_populates="reservations", lazy="selectin"
    )

    # Base-class loads return Hold or ConfirmedReservation with their own
    # columns already populated.
    __mapper_args__ = {"polymorphic_on": "status", "with_polymorphic": "*"}

    __table_args__ = (
        CheckConstraint(
            "(status = 'HELD' AND hold_token IS NOT NULL AND hold_expires_at IS NOT NULL) "
            "OR (status = 'CONFIRMED' AND hold_token IS NULL AND hold_expires_at IS NULL "
            "AND customer_name IS NOT NULL AND email IS NOT NULL AND phone IS NOT NULL "
            "AND party_size IS NOT NULL)",
            name="ck_reservation_phase",
        ),
        Index("idx_region_date_slot", "region_id", "date", "time_slot"),
    )


class Hold(Reservation):
    """A time-boxed placeholder that keeps a table until it is confirmed."""

    hold_token: Mapped[str] = mapped_column(String(100), nullable=True)
    hold_expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)

    __mapper_args__ = {"polymorphic_identity": ReservationStatus.HELD}

    def is_active(self, now: datetime) -> bool:
        return self.hold_expires_at > now


class ConfirmedReservation(Reservation):
    """A permanent booking with the customer's details."""

    customer_name: Mapped[str] = mapped_column(String(100), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=True)
    phone: Mapped[str] = mapped_column(String(20), nullable=True)
    party_size: Mapped[int] = mapped_column(Integer, nullable=True)
    children_count: Mapped[int] = mapped_column(Integer, nullable=True)
    smoking_requested: Mapped[bool] = mapped_column(Boolean, nullable=True)
    celebration_flag: Mapped[bool] = mapped_column(Boolean, nullable=True)
    celebration_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    __mapper_args__ = {"polymorphic_identity": ReservationStatus.CONFIRMED}


# Phase-specific columns only exist once the subclasses are mapped.
Index("idx_hold_expires_at", Hold.__table__.c.hold_expires_at)
Index("idx_hold_token", Hold.__table__.c.hold_token)
Index("idx_email", ConfirmedReservation.__table__.c.email)
