"""Trip model: itinerary listings published by operators."""

import uuid
from decimal import Decimal

from sqlalchemy import JSON, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from safari_connector.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Trip(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A safari itinerary owned by one operator.

    ``days`` holds the day-by-day programme (``[{"day": 1, "title": ..., "description": ...}]``)
    and ``rates`` the seasonal price rows (``[{"season": ..., "price_per_person": ...}]``).
    """

    __tablename__ = "trips"

    operator_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("operators.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    style: Mapped[str | None] = mapped_column(String(100), default=None)  # budget, mid-range, luxury
    overview: Mapped[str | None] = mapped_column(Text, default=None)
    destinations: Mapped[list | None] = mapped_column(JSON, default=list)
    days: Mapped[list | None] = mapped_column(JSON, default=list)
    rates: Mapped[list | None] = mapped_column(JSON, default=list)
    base_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), default=None)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    status: Mapped[str] = mapped_column(String(50), default="draft", index=True)  # draft, published

    # Relationships
    operator: Mapped["Operator"] = relationship(back_populates="trips", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return f"<Trip(id={self.id}, title={self.title!r}, status={self.status!r})>"
