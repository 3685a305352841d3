"""Initial schema: availability_settings, calendar_blocks, bookings, booking_day_locks.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

block_type = sa.Enum(
    "MEETING", "BLOCKED", "HOLIDAY", "TRAINING", "PERSONAL", "MAINTENANCE", "AVAILABILITY_WINDOW",
    name="blocktype",
)
booking_status = sa.Enum("PENDING", "CONFIRMED", "COMPLETED", "CANCELLED", name="bookingstatus")


def upgrade() -> None:
    op.create_table(
        "availability_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=False),
        sa.Column("time_zone", sa.String(), nullable=False, server_default="Europe/London"),
        sa.Column("working_days", sa.JSON(), nullable=False),
        sa.Column("daily_start_time", sa.String(), nullable=False, server_default="09:00"),
        sa.Column("daily_end_time", sa.String(), nullable=False, server_default="17:00"),
        sa.Column("lunch_break_start", sa.String(), nullable=False, server_default="12:00"),
        sa.Column("lunch_break_end", sa.String(), nullable=False, server_default="13:00"),
        sa.Column("include_lunch_break", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("session_duration", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("buffer_time_between_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_sessions_per_day", sa.Integer(), nullable=True),
        sa.Column("advance_booking_days", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_availability_settings_actor_id"), "availability_settings", ["actor_id"], unique=True)

    op.create_table(
        "calendar_blocks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("block_type", block_type, nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("deactivated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("end_time > start_time", name="ck_calendar_blocks_period"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_calendar_blocks_actor_id"), "calendar_blocks", ["actor_id"], unique=False)
    op.create_index(op.f("ix_calendar_blocks_start_time"), "calendar_blocks", ["start_time"], unique=False)
    op.create_index(op.f("ix_calendar_blocks_end_time"), "calendar_blocks", ["end_time"], unique=False)
    op.create_index(op.f("ix_calendar_blocks_is_active"), "calendar_blocks", ["is_active"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(), nullable=False),
        sa.Column("local_date", sa.Date(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("status", booking_status, nullable=False),
        sa.Column("participant_name", sa.String(), nullable=False),
        sa.Column("participant_email", sa.String(), nullable=False),
        sa.Column("participant_phone", sa.String(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("idempotency_key", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("actor_id", "idempotency_key", name="uq_bookings_actor_idempotency_key"),
    )
    op.create_index(op.f("ix_bookings_actor_id"), "bookings", ["actor_id"], unique=False)
    op.create_index(op.f("ix_bookings_scheduled_at"), "bookings", ["scheduled_at"], unique=False)
    op.create_index(op.f("ix_bookings_local_date"), "bookings", ["local_date"], unique=False)
    op.create_index(op.f("ix_bookings_status"), "bookings", ["status"], unique=False)

    op.create_table(
        "booking_day_locks",
        sa.Column("actor_id", sa.String(), nullable=False),
        sa.Column("local_date", sa.Date(), nullable=False),
        sa.PrimaryKeyConstraint("actor_id", "local_date"),
    )


def downgrade() -> None:
    op.drop_table("booking_day_locks")
    op.drop_index(op.f("ix_bookings_status"), table_name="bookings")
    op.drop_index(op.f("ix_bookings_local_date"), table_name="bookings")
    op.drop_index(op.f("ix_bookings_scheduled_at"), table_name="bookings")
    op.drop_index(op.f("ix_bookings_actor_id"), table_name="bookings")
    op.drop_table("bookings")
    op.drop_index(op.f("ix_calendar_blocks_is_active"), table_name="calendar_blocks")
    op.drop_index(op.f("ix_calendar_blocks_end_time"), table_name="calendar_blocks")
    op.drop_index(op.f("ix_calendar_blocks_start_time"), table_name="calendar_blocks")
    op.drop_index(op.f("ix_calendar_blocks_actor_id"), table_name="calendar_blocks")
    op.drop_table("calendar_blocks")
    op.drop_index(op.f("ix_availability_settings_actor_id"), table_name="availability_settings")
    op.drop_table("availability_settings")
    block_type.drop(op.get_bind(), checkfirst=True)
    booking_status.drop(op.get_bind(), checkfirst=True)
