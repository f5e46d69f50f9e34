"""Quote model: an operator's priced reply to an enquiry."""

import uuid
from decimal import Decimal

from sqlalchemy import JSON, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from safari_connector.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Quote(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Several quotes may exist per (enquiry, operator); the newest one is active."""

    __tablename__ = "quotes"

    quote_request_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("quote_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    operator_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("operators.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    total_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), default=None)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    inclusions: Mapped[list | None] = mapped_column(JSON, default=None)
    exclusions: Mapped[list | None] = mapped_column(JSON, default=None)
    status: Mapped[str] = mapped_column(String(50), default="answered")  # answered, accepted, declined

    __table_args__ = (Index("ix_quotes_request_operator_created", "quote_request_id", "operator_id", "created_at"),)

    def __repr__(self) -> str:
        return f"<Quote(id={self.id}, quote_request_id={self.quote_request_id}, status={self.status!r})>"
