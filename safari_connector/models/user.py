"""User model: authentication and role."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from safari_connector.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

USER_ROLES = ("traveller", "operator", "admin", "finance")


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Account for travellers, operator staff, and back-office users."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    role: Mapped[str] = mapped_column(String(50), default="traveller", nullable=False)  # see USER_ROLES

    # Relationships
    operator: Mapped["Operator | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Operator", back_populates="user", uselist=False, lazy="selectin"
    )

    @property
    def is_back_office(self) -> bool:
        return self.role in ("admin", "finance")

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"
