"""Restaurant table model"""

import enum
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Enum, CheckConstraint
from sqlalchemy.orm import relationship

from app.database import Base, utcnow


class TableType(str, enum.Enum):
    """Seating area of a table"""
    STANDARD = "standard"
    WINDOW = "window"
    OUTDOOR = "outdoor"
    PRIVATE = "private"


class RestaurantTable(Base):
    """A physical table that can be assigned to reservations"""
    __tablename__ = "restaurant_tables"
    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_capacity_positive"),
        CheckConstraint("min_party_size >= 1", name="check_min_party_size_positive"),
        CheckConstraint("min_party_size <= capacity", name="check_min_party_within_capacity"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    number = Column(Integer, unique=True, nullable=False)
    name = Column(String(100))

    # Seating
    capacity = Column(Integer, nullable=False)
    min_party_size = Column(Integer, nullable=False, default=1)
    table_type = Column(Enum(TableType, native_enum=False, length=20), default=TableType.STANDARD, nullable=False)
    location_description = Column(String(255))

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    reservations = relationship("Reservation", back_populates="table")

    def seats(self, party_size: int) -> bool:
        """Whether the table is active and sized for the party"""
        return self.is_active is not False and (self.min_party_size or 1) <= party_size <= self.capacity
