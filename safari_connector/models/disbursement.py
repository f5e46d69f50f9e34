"""Disbursement model: payouts of an operator's share once a booking is paid in full."""

import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from safari_connector.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Disbursement(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One payout to an operator for a booking; ``amount`` is the operator receivable."""

    __tablename__ = "disbursements"

    operator_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("operators.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    method: Mapped[str] = mapped_column(String(50), nullable=False)  # mpesa, bank
    status: Mapped[str] = mapped_column(String(50), default="pending", index=True)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    created_by: Mapped[uuid.UUID | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Disbursement(id={self.id}, booking_id={self.booking_id}, "
            f"amount={self.amount}, status={self.status!r})>"
        )
