"""initial_marketplace_schema

Revision ID: 3f9c2a71b0de
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2a71b0de'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("role", sa.String(50), nullable=False, server_default="traveller"),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "operators",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("country", sa.String(100)),
        sa.Column("location", sa.String(255)),
        sa.Column("contact_email", sa.String(255)),
        sa.Column("phone", sa.String(50)),
        sa.Column("website", sa.String(512)),
        sa.Column("description", sa.Text()),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("status_reason", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_operators_user_id", "operators", ["user_id"], unique=True)
    op.create_index("ix_operators_status", "operators", ["status"])

    op.create_table(
        "trips",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("operator_id", sa.UUID(), sa.ForeignKey("operators.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("duration_days", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("style", sa.String(100)),
        sa.Column("overview", sa.Text()),
        sa.Column("destinations", sa.JSON()),
        sa.Column("days", sa.JSON()),
        sa.Column("rates", sa.JSON()),
        sa.Column("base_price", sa.Numeric(12, 2)),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("status", sa.String(50), nullable=False, server_default="draft"),
        *_timestamps(),
    )
    op.create_index("ix_trips_operator_id", "trips", ["operator_id"])
    op.create_index("ix_trips_status", "trips", ["status"])

    op.create_table(
        "quote_requests",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("trip_id", sa.UUID(), sa.ForeignKey("trips.id", ondelete="SET NULL"), nullable=True),
        sa.Column("operator_id", sa.UUID(), sa.ForeignKey("operators.id", ondelete="CASCADE"), nullable=True),
        sa.Column("traveller_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("trip_title", sa.String(255)),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50)),
        sa.Column("travel_date", sa.Date()),
        sa.Column("pax", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("note", sa.Text()),
        sa.Column("itinerary", sa.JSON()),
        sa.Column("source", sa.String(50), nullable=False, server_default="trip_page"),
        sa.Column("status", sa.String(50), nullable=False, server_default="new"),
        *_timestamps(),
    )
    op.create_index("ix_quote_requests_trip_id", "quote_requests", ["trip_id"])
    op.create_index("ix_quote_requests_operator_id", "quote_requests", ["operator_id"])
    op.create_index("ix_quote_requests_traveller_id", "quote_requests", ["traveller_id"])
    op.create_index("ix_quote_requests_email", "quote_requests", ["email"])
    op.create_index("ix_quote_requests_status", "quote_requests", ["status"])
    op.create_index("ix_quote_requests_operator_id_created_at", "quote_requests", ["operator_id", "created_at"])

    op.create_table(
        "messages",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "quote_request_id", sa.UUID(), sa.ForeignKey("quote_requests.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("sender_role", sa.String(50), nullable=False),
        sa.Column("sender_id", sa.UUID(), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_messages_quote_request_id", "messages", ["quote_request_id"])

    op.create_table(
        "quotes",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "quote_request_id", sa.UUID(), sa.ForeignKey("quote_requests.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("operator_id", sa.UUID(), sa.ForeignKey("operators.id", ondelete="CASCADE"), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2)),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("notes", sa.Text()),
        sa.Column("inclusions", sa.JSON()),
        sa.Column("exclusions", sa.JSON()),
        sa.Column("status", sa.String(50), nullable=False, server_default="answered"),
        *_timestamps(),
    )
    op.create_index("ix_quotes_quote_request_id", "quotes", ["quote_request_id"])
    op.create_index("ix_quotes_operator_id", "quotes", ["operator_id"])
    op.create_index(
        "ix_quotes_request_operator_created", "quotes", ["quote_request_id", "operator_id", "created_at"]
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("trip_id", sa.UUID(), sa.ForeignKey("trips.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("operator_id", sa.UUID(), sa.ForeignKey("operators.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("traveller_id", sa.UUID(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quote_id", sa.UUID(), sa.ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "quote_request_id", sa.UUID(), sa.ForeignKey("quote_requests.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("date_from", sa.Date(), nullable=False),
        sa.Column("date_to", sa.Date(), nullable=False),
        sa.Column("pax", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("commission_percentage", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("commission_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("operator_receivable", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("payment_reference", sa.String(255)),
        sa.Column("meta", sa.JSON()),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending_payment"),
        sa.Column("payment_status", sa.String(50), nullable=False, server_default="unpaid"),
        *_timestamps(),
    )
    # One booking per accepted quote; concurrent accepts collide here.
    op.create_unique_constraint("uq_bookings_quote_id", "bookings", ["quote_id"])
    op.create_index("ix_bookings_trip_id", "bookings", ["trip_id"])
    op.create_index("ix_bookings_operator_id", "bookings", ["operator_id"])
    op.create_index("ix_bookings_traveller_id", "bookings", ["traveller_id"])
    op.create_index("ix_bookings_quote_request_id", "bookings", ["quote_request_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_payment_status", "bookings", ["payment_status"])
    op.create_index("ix_bookings_status_created_at", "bookings", ["status", "created_at"])

    op.create_table(
        "booking_events",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("booking_id", sa.UUID(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("actor_id", sa.UUID(), nullable=True),
        sa.Column("actor_role", sa.String(50), nullable=False),
        sa.Column("field", sa.String(50), nullable=False),
        sa.Column("from_value", sa.String(50), nullable=False),
        sa.Column("to_value", sa.String(50), nullable=False),
        sa.Column("is_override", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("note", sa.Text()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_booking_events_booking_id", "booking_events", ["booking_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("booking_id", sa.UUID(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("method", sa.String(50), nullable=False, server_default="bank_transfer"),
        sa.Column("amount", sa.Numeric(12, 2)),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("reference", sa.String(255)),
        sa.Column("proof_url", sa.String(1024)),
        sa.Column("note", sa.Text()),
        sa.Column("status", sa.String(50), nullable=False, server_default="submitted"),
        sa.Column("verified_by", sa.UUID(), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_payments_booking_id", "payments", ["booking_id"])
    op.create_index("ix_payments_status", "payments", ["status"])


def downgrade() -> None:
    for table in (
        "payments",
        "booking_events",
        "bookings",
        "quotes",
        "messages",
        "quote_requests",
        "trips",
        "operators",
        "users",
    ):
        op.drop_table(table)
