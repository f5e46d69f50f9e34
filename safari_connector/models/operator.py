"""Operator model: safari tour suppliers awaiting or holding approval."""

import uuid

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from safari_connector.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

OPERATOR_STATUSES = ("pending", "approved", "rejected", "suspended")


class Operator(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A supplier profile owned by one operator user."""

    __tablename__ = "operators"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    country: Mapped[str | None] = mapped_column(String(100), default=None)
    location: Mapped[str | None] = mapped_column(String(255), default=None)
    contact_email: Mapped[str | None] = mapped_column(String(255), default=None)
    phone: Mapped[str | None] = mapped_column(String(50), default=None)
    website: Mapped[str | None] = mapped_column(String(512), default=None)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    status: Mapped[str] = mapped_column(String(50), default="pending", index=True)  # see OPERATOR_STATUSES
    status_reason: Mapped[str | None] = mapped_column(Text, default=None)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="operator", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
    trips: Mapped[list["Trip"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="operator", lazy="selectin", cascade="all, delete-orphan"
    )

    @property
    def is_approved(self) -> bool:
        return self.status == "approved"

    def __repr__(self) -> str:
        return f"<Operator(id={self.id}, company_name={self.company_name!r}, status={self.status!r})>"
