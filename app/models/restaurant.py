"""Restaurant configuration models"""

from sqlalchemy import Column, Integer, Boolean, DateTime, Time, String, CheckConstraint

from app.database import Base, utcnow


class ReservationConfig(Base):
    """Versioned reservation policy; the highest version is active"""
    __tablename__ = "reservation_config"
    __table_args__ = (
        CheckConstraint("reservation_duration_minutes > 0 AND reservation_duration_minutes <= 480",
                        name="check_duration_reasonable"),
        CheckConstraint("grace_period_minutes >= 0 AND grace_period_minutes <= 60",
                        name="check_grace_reasonable"),
        CheckConstraint("max_sitting_minutes > 0 AND max_sitting_minutes <= 600",
                        name="check_sitting_reasonable"),
        CheckConstraint("time_slot_interval_minutes > 0", name="check_interval_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    version = Column(Integer, unique=True, nullable=False)

    # Durations (minutes)
    reservation_duration_minutes = Column(Integer, nullable=False, default=105)  # 90 dining + 15 buffer
    grace_period_minutes = Column(Integer, nullable=False, default=15)
    max_sitting_minutes = Column(Integer, nullable=False, default=120)
    time_slot_interval_minutes = Column(Integer, nullable=False, default=30)
    lunch_buffer_minutes = Column(Integer, nullable=False, default=15)
    dinner_buffer_minutes = Column(Integer, nullable=False, default=15)

    # Booking window
    advance_booking_days = Column(Integer, nullable=False, default=30)
    same_day_booking_hours = Column(Integer, nullable=False, default=2)
    max_party_size = Column(Integer, nullable=False, default=12)

    updated_by = Column(String(255))
    created_at = Column(DateTime, default=utcnow)


class BusinessHours(Base):
    """Opening hours for one weekday (0=Monday)"""
    __tablename__ = "business_hours"
    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="check_day_of_week"),
    )

    day_of_week = Column(Integer, primary_key=True, autoincrement=False)
    is_open = Column(Boolean, default=True, nullable=False)
    open_time = Column(Time)
    close_time = Column(Time)

    # Service periods; both optional
    lunch_start = Column(Time)
    lunch_end = Column(Time)
    dinner_start = Column(Time)
    dinner_end = Column(Time)

    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
