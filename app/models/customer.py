"""Customer model"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime
from sqlalchemy.orm import relationship

from app.database import Base


class Customer(Base):
    """Restaurant customer, either a subscriber or a one-off guest"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(255), nullable=False, default="Guest")
    phone = Column(String(20), index=True)
    email = Column(String(255), index=True)

    # Subscription
    is_subscribed = Column(Boolean, nullable=False, default=False)
    subscription_code = Column(String(20), unique=True)

    created_at = Column(DateTime, default=datetime.now)

    # Relationships
    reservations = relationship("Reservation", back_populates="customer")
