"""Quote request (enquiry) and its chat messages."""

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, Date, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from safari_connector.database import Base, TimestampMixin, UUIDPrimaryKeyMixin, utcnow

MESSAGE_SENDER_ROLES = ("operator", "traveller", "system")


class QuoteRequest(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A traveller's pricing ask for a trip (or for an AI-generated itinerary)."""

    __tablename__ = "quote_requests"

    trip_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("trips.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    operator_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("operators.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    traveller_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    trip_title: Mapped[str | None] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(50))
    travel_date: Mapped[date | None] = mapped_column(Date)
    pax: Mapped[int] = mapped_column(Integer, default=1)
    note: Mapped[str | None] = mapped_column(Text)
    itinerary: Mapped[dict[str, Any] | None] = mapped_column(JSON, default=None)
    source: Mapped[str] = mapped_column(String(50), default="trip_page")  # trip_page, ai_studio
    status: Mapped[str] = mapped_column(String(50), default="new", index=True)  # new, answered, booked, closed

    # Relationships
    messages: Mapped[list["Message"]] = relationship(
        back_populates="quote_request",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )

    __table_args__ = (Index("ix_quote_requests_operator_id_created_at", "operator_id", "created_at"),)

    def __repr__(self) -> str:
        return f"<QuoteRequest(id={self.id}, operator_id={self.operator_id}, status={self.status!r})>"


class Message(UUIDPrimaryKeyMixin, Base):
    """A single chat entry on an enquiry. Messages are immutable (no updated_at)."""

    __tablename__ = "messages"

    quote_request_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("quote_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender_role: Mapped[str] = mapped_column(String(50), nullable=False)  # see MESSAGE_SENDER_ROLES
    sender_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, server_default=func.now())

    # Relationships
    quote_request: Mapped["QuoteRequest"] = relationship(back_populates="messages", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, quote_request_id={self.quote_request_id}, sender_role={self.sender_role!r})>"
