"""Reservation model"""

import enum
import uuid
from sqlalchemy import (
    Column, String, Integer, Boolean, Date, Time, DateTime, Enum, ForeignKey, Text, Uuid,
    CheckConstraint, UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship

from app.database import Base, utcnow


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    CONFIRMED = "confirmed"
    SEATED = "seated"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that hold a table for their interval
BLOCKING_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.SEATED)


class Reservation(Base):
    """Table reservations"""
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("party_size > 0", name="check_party_size_positive"),
        CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
        Index("idx_reservations_table_date", "table_id", "reservation_date"),
        Index("idx_reservations_date_status", "reservation_date", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    table_id = Column(Integer, ForeignKey("restaurant_tables.id"), nullable=False)

    # Customer information
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255))
    customer_phone = Column(String(20))
    special_requests = Column(Text)

    # Reservation details
    party_size = Column(Integer, nullable=False)
    reservation_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Status
    status = Column(
        Enum(ReservationStatus, native_enum=False, length=20),
        default=ReservationStatus.CONFIRMED,
        nullable=False,
    )

    # Policy frozen from the config version active at booking time
    config_version = Column(Integer, nullable=False)
    service_period = Column(String(20), nullable=False)  # lunch, dinner, service
    duration_minutes = Column(Integer, nullable=False)
    buffer_minutes = Column(Integer, nullable=False, default=0)
    grace_period_minutes = Column(Integer, nullable=False)
    max_sitting_minutes = Column(Integer, nullable=False)

    # Arrival tracking
    on_time = Column(Boolean)
    arrival_delay_minutes = Column(Integer)
    actual_arrival_time = Column(DateTime)
    actual_departure_time = Column(DateTime)
    arrival_notes = Column(Text)
    cancelled_at = Column(DateTime)

    # Metadata
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    table = relationship("RestaurantTable", back_populates="reservations")


class TableDayLock(Base):
    """Per table and service date booking version.

    Every booking bumps the version in the same transaction that inserts the
    reservation, so two writers that read the same version cannot both commit.
    """
    __tablename__ = "table_day_locks"
    __table_args__ = (
        UniqueConstraint("table_id", "service_date", name="uq_table_day_lock"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_id = Column(Integer, ForeignKey("restaurant_tables.id"), nullable=False)
    service_date = Column(Date, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
