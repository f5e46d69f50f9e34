"""Booking model and its transition audit trail."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Index, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from safari_connector.database import Base, TimestampMixin, UUIDPrimaryKeyMixin, utcnow
from safari_connector.lifecycle.status import INITIAL_PAYMENT_STATUS, INITIAL_STATUS


class Booking(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A traveller's purchase of a trip from an operator.

    ``status`` and ``payment_status`` are written only by the transition
    authority. ``meta`` is informational (trip title, operator name, payment
    proof details) and never used to resolve identity.
    """

    __tablename__ = "bookings"

    trip_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("trips.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    operator_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("operators.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    traveller_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    quote_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("quotes.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )
    quote_request_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("quote_requests.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    date_from: Mapped[date] = mapped_column(Date, nullable=False)
    date_to: Mapped[date] = mapped_column(Date, nullable=False)
    pax: Mapped[int] = mapped_column(Integer, default=1)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    commission_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))
    commission_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    operator_receivable: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    payment_reference: Mapped[str | None] = mapped_column(String(255), default=None)
    meta: Mapped[dict[str, Any] | None] = mapped_column(JSON, default=dict)
    status: Mapped[str] = mapped_column(
        String(50),
        default=INITIAL_STATUS.value,
        index=True,
    )
    payment_status: Mapped[str] = mapped_column(
        String(50),
        default=INITIAL_PAYMENT_STATUS.value,
        index=True,
    )
    # pending until a payout is created, then processing
    disbursement_status: Mapped[str] = mapped_column(String(50), default="pending")

    __table_args__ = (Index("ix_bookings_status_created_at", "status", "created_at"),)

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, operator_id={self.operator_id}, traveller_id={self.traveller_id}, "
            f"status={self.status}, payment_status={self.payment_status})>"
        )


class BookingEvent(UUIDPrimaryKeyMixin, Base):
    """Append-only record of an applied transition or an administrative override."""

    __tablename__ = "booking_events"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    actor_role: Mapped[str] = mapped_column(String(50), nullable=False)
    field: Mapped[str] = mapped_column(String(50), nullable=False)  # status, payment_status, disbursement_status
    from_value: Mapped[str] = mapped_column(String(50), nullable=False)
    to_value: Mapped[str] = mapped_column(String(50), nullable=False)
    is_override: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    note: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now())

    def __repr__(self) -> str:
        return f"<BookingEvent(booking_id={self.booking_id}, {self.field}: {self.from_value} -> {self.to_value})>"
