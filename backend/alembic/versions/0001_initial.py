"""Initial schema: teachers, availability, blocked ranges, settings, bookings.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

booking_status = sa.Enum(
    "REQUEST", "PENDING", "QUOTE_SENT", "PAID", "PARTIAL", "REFUNDED",
    name="bookingstatus",
)
recurring_type = sa.Enum("WEEKLY", "MONTHLY", name="recurringtype")


def upgrade() -> None:
    op.create_table(
        "teachers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("subdomain", sa.String(63), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255)),
        sa.Column("bio", sa.Text()),
        sa.Column("phone", sa.String(20)),
        sa.Column("hourly_rate", sa.Numeric(10, 2)),
        sa.Column("theme", sa.String(50)),
        sa.Column("timezone", sa.String(50)),
        sa.Column("is_active", sa.Boolean()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_teachers_subdomain", "teachers", ["subdomain"], unique=True)

    op.create_table(
        "availability_windows",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("teacher_id", sa.Uuid(), sa.ForeignKey("teachers.id"), nullable=False),
        sa.Column("title", sa.String(100)),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("active_from", sa.Date(), nullable=False),
        sa.Column("active_until", sa.Date()),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index(
        "ix_availability_windows_teacher_day",
        "availability_windows",
        ["teacher_id", "day_of_week"],
    )

    op.create_table(
        "blocked_ranges",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("teacher_id", sa.Uuid(), sa.ForeignKey("teachers.id"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.String(255)),
        sa.Column("is_recurring", sa.Boolean(), nullable=False),
        sa.Column("recurring_type", recurring_type),
        sa.Column("created_at", sa.DateTime()),
    )

    op.create_table(
        "booking_settings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("teacher_id", sa.Uuid(), sa.ForeignKey("teachers.id"), nullable=False, unique=True),
        sa.Column("min_advance_booking_hours", sa.Integer(), nullable=False),
        sa.Column("max_advance_booking_days", sa.Integer(), nullable=False),
        sa.Column("session_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("buffer_minutes", sa.Integer(), nullable=False),
        sa.Column("max_sessions_per_day", sa.Integer(), nullable=False),
        sa.Column("cancellation_policy_hours", sa.Integer(), nullable=False),
        sa.Column("allow_weekends", sa.Boolean(), nullable=False),
        sa.Column("allow_same_day_booking", sa.Boolean(), nullable=False),
        sa.Column("allow_customer_book", sa.Boolean(), nullable=False),
        sa.Column("allow_manual_book", sa.Boolean(), nullable=False),
        sa.Column("form_fields", sa.JSON()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("teacher_id", sa.Uuid(), sa.ForeignKey("teachers.id"), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_email", sa.String(255), nullable=False),
        sa.Column("customer_phone", sa.String(30)),
        sa.Column("booking_date", sa.Date()),
        sa.Column("start_time", sa.Time()),
        sa.Column("end_time", sa.Time()),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", booking_status, nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("external_id", sa.String(100)),
        sa.Column("invoice_reference", sa.String(100)),
        sa.Column("quote_description", sa.Text()),
        sa.Column("quote_duration_hours", sa.Numeric(6, 2)),
        sa.Column("quote_notes", sa.Text()),
        sa.Column("quote_sent_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    # Storage-level guard against double-booking
    op.create_index(
        "ix_bookings_unique_slot",
        "bookings",
        ["teacher_id", "booking_date", "start_time"],
        unique=True,
    )
    op.create_index(
        "ix_bookings_teacher_external",
        "bookings",
        ["teacher_id", "external_id"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_bookings_teacher_external", table_name="bookings")
    op.drop_index("ix_bookings_unique_slot", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("booking_settings")
    op.drop_table("blocked_ranges")
    op.drop_index("ix_availability_windows_teacher_day", table_name="availability_windows")
    op.drop_table("availability_windows")
    op.drop_index("ix_teachers_subdomain", table_name="teachers")
    op.drop_table("teachers")
    booking_status.drop(op.get_bind(), checkfirst=True)
    recurring_type.drop(op.get_bind(), checkfirst=True)
