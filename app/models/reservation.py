"""Reservation model and lifecycle states"""

import enum
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship

from app.database import Base


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    ACTIVE = "ACTIVE"  # accepted advance booking, start time set, no table yet
    WAITING = "WAITING"  # waitlist entry, no start time, no table
    NOTIFIED = "NOTIFIED"  # table pinned, awaiting check-in
    IN_PROGRESS = "IN_PROGRESS"  # checked in, dining
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class ReservationKind(str, enum.Enum):
    """How the reservation entered the system"""
    ADVANCE = "ADVANCE"
    WALK_IN = "WALK_IN"


# Legal source states for each target state
ALLOWED_TRANSITIONS = {
    ReservationStatus.NOTIFIED: (ReservationStatus.WAITING, ReservationStatus.ACTIVE),
    ReservationStatus.IN_PROGRESS: (ReservationStatus.ACTIVE, ReservationStatus.NOTIFIED),
    ReservationStatus.COMPLETED: (ReservationStatus.IN_PROGRESS,),
    ReservationStatus.CANCELED: (
        ReservationStatus.WAITING,
        ReservationStatus.ACTIVE,
        ReservationStatus.NOTIFIED,
    ),
    ReservationStatus.WAITING: (ReservationStatus.ACTIVE,),
}

# States that pin a concrete table
PINNED_STATUSES = (ReservationStatus.NOTIFIED, ReservationStatus.IN_PROGRESS)


class Reservation(Base):
    """Table reservations and waitlist entries"""
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    table_id = Column(Integer, ForeignKey("restaurant_tables.id", ondelete="SET NULL"))

    # Reservation details
    start_time = Column(DateTime)  # null only while WAITING
    party_size = Column(Integer, nullable=False)
    confirmation_code = Column(Integer, unique=True, nullable=False)

    # Lifecycle
    status = Column(
        Enum(ReservationStatus, native_enum=False, length=20),
        nullable=False,
        default=ReservationStatus.ACTIVE,
    )
    kind = Column(
        Enum(ReservationKind, native_enum=False, length=20),
        nullable=False,
        default=ReservationKind.ADVANCE,
    )
    reminder_sent = Column(Boolean, nullable=False, default=False)
    checked_in_at = Column(DateTime)
    checked_out_at = Column(DateTime)

    # Metadata
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    # Relationships
    customer = relationship("Customer", back_populates="reservations")
    table = relationship("RestaurantTable", back_populates="reservations")
    bill = relationship("Bill", back_populates="reservation", uselist=False)
