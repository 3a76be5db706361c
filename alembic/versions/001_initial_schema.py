"""Initial schema: slots, activity capacities, availability ledger, customers, bookings.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVITY_CHECK = "activity_type IN ('surf', 'sup', 'kayak')"
ACCOMMODATION_CHECK = "accommodation_type IN ('tent', 'dorm', 'cottage')"


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Weekly slot grid
    op.create_table(
        "slots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("day_of_week BETWEEN 1 AND 7", name="check_slot_day_of_week"),
        sa.CheckConstraint("start_time < end_time", name="check_slot_time_order"),
    )
    op.create_index("ix_slots_id", "slots", ["id"])
    # Availability listing and auto-allocation: active slots of a weekday by start time
    op.create_index("ix_slots_day_active_start", "slots", ["day_of_week", "is_active", "start_time"])

    op.create_table(
        "activity_capacities",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slot_id", sa.Integer(), sa.ForeignKey("slots.id"), nullable=False),
        sa.Column("activity_type", sa.String(20), nullable=False),
        sa.Column("max_capacity", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("slot_id", "activity_type", name="uq_slot_activity"),
        sa.CheckConstraint("max_capacity >= 0", name="check_activity_capacity_non_negative"),
        sa.CheckConstraint(ACTIVITY_CHECK, name="check_activity_capacity_type"),
    )
    op.create_index("ix_activity_capacities_id", "activity_capacities", ["id"])
    op.create_index("ix_activity_capacities_slot_id", "activity_capacities", ["slot_id"])

    # Capacity ledger. The unique constraint is the conflict target of the lazy
    # row insert; booked_count <= max_capacity is enforced by the conditional UPDATE.
    op.create_table(
        "slot_activity_availability",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slot_id", sa.Integer(), sa.ForeignKey("slots.id"), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("activity_type", sa.String(20), nullable=False),
        sa.Column("booked_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.UniqueConstraint("slot_id", "booking_date", "activity_type", name="uq_slot_date_activity"),
        sa.CheckConstraint("booked_count >= 0", name="check_booked_count_non_negative"),
        sa.CheckConstraint(ACTIVITY_CHECK, name="check_availability_activity_type"),
    )
    op.create_index("ix_slot_activity_availability_id", "slot_activity_availability", ["id"])
    op.create_index("ix_availability_date", "slot_activity_availability", ["booking_date"])

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_customers_id", "customers", ["id"])
    op.create_index("ix_customers_email", "customers", ["email"], unique=True)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("booking_type", sa.String(20), nullable=False),
        sa.Column("total_people", sa.Integer(), nullable=False),
        sa.Column("base_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("tax_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("payment_reference", sa.String(100), nullable=True),
        sa.Column("booking_status", sa.String(20), nullable=False, server_default=sa.text("'confirmed'")),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("total_people > 0", name="check_booking_total_people_positive"),
        sa.CheckConstraint(
            "booking_type IN ('activity', 'package', 'stay_only', 'surf_sup')", name="check_booking_type"
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'completed', 'failed')", name="check_booking_payment_status"
        ),
        sa.CheckConstraint("booking_status IN ('confirmed', 'cancelled')", name="check_booking_status"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"])
    # Staff listing is newest first
    op.create_index("ix_bookings_created_at", "bookings", ["created_at"])

    op.create_table(
        "booking_people",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("person_index", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("activity_type", sa.String(20), nullable=True),
        sa.UniqueConstraint("booking_id", "person_index", name="uq_booking_person_index"),
        sa.CheckConstraint("age BETWEEN 5 AND 100", name="check_person_age_range"),
    )
    op.create_index("ix_booking_people_id", "booking_people", ["id"])
    op.create_index("ix_booking_people_booking_id", "booking_people", ["booking_id"])

    op.create_table(
        "activity_bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False, unique=True),
        sa.Column("slot_id", sa.Integer(), sa.ForeignKey("slots.id"), nullable=False),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("activity_type", sa.String(20), nullable=True),
    )
    op.create_index("ix_activity_bookings_id", "activity_bookings", ["id"])
    op.create_index("ix_activity_bookings_slot_date", "activity_bookings", ["slot_id", "session_date"])

    op.create_table(
        "package_bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False, unique=True),
        sa.Column("package_type", sa.String(30), nullable=False),
        sa.Column("accommodation_type", sa.String(20), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("units_needed", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "package_type IN ('1_night_1_session', '1_night_2_sessions', '2_nights_3_sessions')",
            name="check_package_type",
        ),
        sa.CheckConstraint(ACCOMMODATION_CHECK, name="check_package_accommodation_type"),
        sa.CheckConstraint("check_out_date > check_in_date", name="check_package_date_order"),
    )
    op.create_index("ix_package_bookings_id", "package_bookings", ["id"])

    op.create_table(
        "package_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("package_booking_id", sa.Integer(), sa.ForeignKey("package_bookings.id"), nullable=False),
        sa.Column("session_number", sa.Integer(), nullable=False),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("slot_id", sa.Integer(), sa.ForeignKey("slots.id"), nullable=False),
        sa.Column("auto_allocated", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.UniqueConstraint("package_booking_id", "session_number", name="uq_package_session_number"),
        sa.UniqueConstraint("package_booking_id", "session_date", name="uq_package_session_date"),
    )
    op.create_index("ix_package_sessions_id", "package_sessions", ["id"])
    op.create_index("ix_package_sessions_package_booking_id", "package_sessions", ["package_booking_id"])

    # What cancellation releases: one row per person per session
    op.create_table(
        "package_person_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("package_session_id", sa.Integer(), sa.ForeignKey("package_sessions.id"), nullable=False),
        sa.Column("booking_person_id", sa.Integer(), sa.ForeignKey("booking_people.id"), nullable=False),
        sa.Column("activity_type", sa.String(20), nullable=False),
        sa.UniqueConstraint("package_session_id", "booking_person_id", name="uq_person_per_session"),
        sa.CheckConstraint(ACTIVITY_CHECK, name="check_person_session_activity_type"),
    )
    op.create_index("ix_package_person_sessions_id", "package_person_sessions", ["id"])
    op.create_index(
        "ix_package_person_sessions_package_session_id", "package_person_sessions", ["package_session_id"]
    )

    op.create_table(
        "stay_bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False, unique=True),
        sa.Column("accommodation_type", sa.String(20), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("nights_count", sa.Integer(), nullable=False),
        sa.Column("includes_meals", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_extended_stay", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("units_needed", sa.Integer(), nullable=False),
        sa.CheckConstraint(ACCOMMODATION_CHECK, name="check_stay_accommodation_type"),
        sa.CheckConstraint("nights_count > 0", name="check_stay_nights_positive"),
        sa.CheckConstraint("check_out_date > check_in_date", name="check_stay_date_order"),
    )
    op.create_index("ix_stay_bookings_id", "stay_bookings", ["id"])


def downgrade() -> None:
    op.drop_table("stay_bookings")
    op.drop_table("package_person_sessions")
    op.drop_table("package_sessions")
    op.drop_table("package_bookings")
    op.drop_table("activity_bookings")
    op.drop_table("booking_people")
    op.drop_table("bookings")
    op.drop_table("customers")
    op.drop_table("slot_activity_availability")
    op.drop_table("activity_capacities")
    op.drop_table("slots")
