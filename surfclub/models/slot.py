"""
Slot and capacity ledger models.

Key design decisions:
- A Slot is a recurring weekly window (ISO day-of-week + times), never a date
- Slots referenced by bookings are deactivated, never deleted
- ActivityCapacity holds the ceiling per (slot, activity)
- SlotActivityAvailability holds booked_count per (slot, date, activity); rows are
  created lazily on the first reservation for the tuple
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from surfclub.db.base import Base, TimestampMixin

ACTIVITY_CHECK = "activity_type IN ('surf', 'sup', 'kayak')"


class Slot(Base, TimestampMixin):
    __tablename__ = "slots"

    id = Column(Integer, primary_key=True, index=True)
    day_of_week = Column(Integer, nullable=False)  # 1 = Monday .. 7 = Sunday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    activities = relationship(
        "ActivityCapacity",
        back_populates="slot",
        lazy="selectin",
        order_by="ActivityCapacity.activity_type",
    )

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 1 AND 7", name="check_slot_day_of_week"),
        CheckConstraint("start_time < end_time", name="check_slot_time_order"),
        # Availability listing: active slots for a weekday ordered by start time
        Index("ix_slots_day_active_start", "day_of_week", "is_active", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<Slot(id={self.id}, day={self.day_of_week}, {self.start_time}-{self.end_time}, active={self.is_active})>"


class ActivityCapacity(Base, TimestampMixin):
    __tablename__ = "activity_capacities"

    id = Column(Integer, primary_key=True, index=True)
    slot_id = Column(Integer, ForeignKey("slots.id"), nullable=False, index=True)
    activity_type = Column(String(20), nullable=False)
    max_capacity = Column(Integer, nullable=False)

    slot = relationship("Slot", back_populates="activities")

    __table_args__ = (
        UniqueConstraint("slot_id", "activity_type", name="uq_slot_activity"),
        CheckConstraint("max_capacity >= 0", name="check_activity_capacity_non_negative"),
        CheckConstraint(ACTIVITY_CHECK, name="check_activity_capacity_type"),
    )

    def __repr__(self) -> str:
        return f"<ActivityCapacity(slot={self.slot_id}, activity={self.activity_type}, max={self.max_capacity})>"


class SlotActivityAvailability(Base, TimestampMixin):
    __tablename__ = "slot_activity_availability"

    id = Column(Integer, primary_key=True, index=True)
    slot_id = Column(Integer, ForeignKey("slots.id"), nullable=False)
    booking_date = Column(Date, nullable=False)
    activity_type = Column(String(20), nullable=False)
    booked_count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        # Conflict target for the lazy upsert and the row the conditional UPDATE locks
        UniqueConstraint("slot_id", "booking_date", "activity_type", name="uq_slot_date_activity"),
        CheckConstraint("booked_count >= 0", name="check_booked_count_non_negative"),
        CheckConstraint(ACTIVITY_CHECK, name="check_availability_activity_type"),
        Index("ix_availability_date", "booking_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<SlotActivityAvailability(slot={self.slot_id}, date={self.booking_date}, "
            f"activity={self.activity_type}, booked={self.booked_count})>"
        )
