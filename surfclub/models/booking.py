"""
Booking models.

Key design decisions:
- One polymorphic `bookings` row per reservation; the booking_type decides which
  single detail row (activity / package / stay) hangs off it
- Status field allows cancellation without deleting records
- Amounts are stored as charged (base, tax, total) so later price changes never
  rewrite history
- Package sessions record, per person, the activity done in that session. These
  rows are what cancellation releases, never the original request
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from surfclub.db.base import Base, TimestampMixin
from surfclub.models.slot import ACTIVITY_CHECK

ACCOMMODATION_CHECK = "accommodation_type IN ('tent', 'dorm', 'cottage')"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    booking_type = Column(String(20), nullable=False)
    total_people = Column(Integer, nullable=False)
    base_amount = Column(Numeric(10, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    payment_status = Column(String(20), nullable=False, default="pending")
    payment_reference = Column(String(100), nullable=True)
    booking_status = Column(String(20), nullable=False, default="confirmed")
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    customer = relationship("Customer", back_populates="bookings", lazy="selectin")
    people = relationship(
        "BookingPerson",
        back_populates="booking",
        lazy="selectin",
        order_by="BookingPerson.person_index",
    )
    activity_detail = relationship("ActivityBooking", back_populates="booking", uselist=False, lazy="selectin")
    package_detail = relationship("PackageBooking", back_populates="booking", uselist=False, lazy="selectin")
    stay_detail = relationship("StayBooking", back_populates="booking", uselist=False, lazy="selectin")

    __table_args__ = (
        CheckConstraint("total_people > 0", name="check_booking_total_people_positive"),
        # surf_sup is the legacy spelling of activity, kept readable for old rows
        CheckConstraint(
            "booking_type IN ('activity', 'package', 'stay_only', 'surf_sup')",
            name="check_booking_type",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'completed', 'failed')",
            name="check_booking_payment_status",
        ),
        CheckConstraint("booking_status IN ('confirmed', 'cancelled')", name="check_booking_status"),
        Index("ix_bookings_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, type={self.booking_type}, people={self.total_people}, status={self.booking_status})>"


class BookingPerson(Base):
    __tablename__ = "booking_people"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    person_index = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    age = Column(Integer, nullable=False)
    # Set for activity bookings; package bookings record activities per session
    activity_type = Column(String(20), nullable=True)

    booking = relationship("Booking", back_populates="people")

    __table_args__ = (
        UniqueConstraint("booking_id", "person_index", name="uq_booking_person_index"),
        CheckConstraint("age BETWEEN 5 AND 100", name="check_person_age_range"),
    )


class ActivityBooking(Base):
    __tablename__ = "activity_bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, unique=True)
    slot_id = Column(Integer, ForeignKey("slots.id"), nullable=False)
    session_date = Column(Date, nullable=False)
    # Top-level activity the request named, if any; people carry their own
    activity_type = Column(String(20), nullable=True)

    booking = relationship("Booking", back_populates="activity_detail")
    slot = relationship("Slot", lazy="selectin")

    __table_args__ = (Index("ix_activity_bookings_slot_date", "slot_id", "session_date"),)


class PackageBooking(Base):
    __tablename__ = "package_bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, unique=True)
    package_type = Column(String(30), nullable=False)
    accommodation_type = Column(String(20), nullable=False)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    units_needed = Column(Integer, nullable=False)

    booking = relationship("Booking", back_populates="package_detail")
    sessions = relationship(
        "PackageSession",
        back_populates="package_booking",
        lazy="selectin",
        order_by="PackageSession.session_number",
    )

    __table_args__ = (
        CheckConstraint(
            "package_type IN ('1_night_1_session', '1_night_2_sessions', '2_nights_3_sessions')",
            name="check_package_type",
        ),
        CheckConstraint(ACCOMMODATION_CHECK, name="check_package_accommodation_type"),
        CheckConstraint("check_out_date > check_in_date", name="check_package_date_order"),
    )


class PackageSession(Base):
    __tablename__ = "package_sessions"

    id = Column(Integer, primary_key=True, index=True)
    package_booking_id = Column(Integer, ForeignKey("package_bookings.id"), nullable=False, index=True)
    session_number = Column(Integer, nullable=False)
    session_date = Column(Date, nullable=False)
    slot_id = Column(Integer, ForeignKey("slots.id"), nullable=False)
    auto_allocated = Column(Boolean, nullable=False, default=False)

    package_booking = relationship("PackageBooking", back_populates="sessions")
    slot = relationship("Slot", lazy="selectin")
    person_activities = relationship(
        "PackagePersonSession",
        back_populates="session",
        lazy="selectin",
        order_by="PackagePersonSession.booking_person_id",
    )

    __table_args__ = (
        UniqueConstraint("package_booking_id", "session_number", name="uq_package_session_number"),
        UniqueConstraint("package_booking_id", "session_date", name="uq_package_session_date"),
    )


class PackagePersonSession(Base):
    __tablename__ = "package_person_sessions"

    id = Column(Integer, primary_key=True, index=True)
    package_session_id = Column(Integer, ForeignKey("package_sessions.id"), nullable=False, index=True)
    booking_person_id = Column(Integer, ForeignKey("booking_people.id"), nullable=False)
    activity_type = Column(String(20), nullable=False)

    session = relationship("PackageSession", back_populates="person_activities")
    person = relationship("BookingPerson", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("package_session_id", "booking_person_id", name="uq_person_per_session"),
        CheckConstraint(ACTIVITY_CHECK, name="check_person_session_activity_type"),
    )


class StayBooking(Base):
    __tablename__ = "stay_bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, unique=True)
    accommodation_type = Column(String(20), nullable=False)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    nights_count = Column(Integer, nullable=False)
    includes_meals = Column(Boolean, nullable=False, default=False)
    is_extended_stay = Column(Boolean, nullable=False, default=False)
    units_needed = Column(Integer, nullable=False)

    booking = relationship("Booking", back_populates="stay_detail")

    __table_args__ = (
        CheckConstraint(ACCOMMODATION_CHECK, name="check_stay_accommodation_type"),
        CheckConstraint("nights_count > 0", name="check_stay_nights_positive"),
        CheckConstraint("check_out_date > check_in_date", name="check_stay_date_order"),
    )
