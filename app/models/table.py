"""Restaurant table model"""

from sqlalchemy import Column, Integer
from sqlalchemy.orm import relationship

from app.database import Base


class RestaurantTable(Base):
    """Physical table and its seating capacity"""
    __tablename__ = "restaurant_tables"

    id = Column(Integer, primary_key=True, autoincrement=True)
    capacity = Column(Integer, nullable=False)

    # Relationships
    reservations = relationship("Reservation", back_populates="table", passive_deletes=True)
