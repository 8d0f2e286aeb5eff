"""Bill model"""

from datetime import datetime
from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import relationship

from app.database import Base


class Bill(Base):
    """Bill for a seated reservation, immutable once paid"""
    __tablename__ = "bills"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id"), unique=True, nullable=False)

    amount_before_discount = Column(Numeric(10, 2), nullable=False)
    final_amount = Column(Numeric(10, 2), nullable=False)

    paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.now)

    # Relationships
    reservation = relationship("Reservation", back_populates="bill")
