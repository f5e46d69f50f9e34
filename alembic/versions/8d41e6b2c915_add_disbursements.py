"""add_disbursements

Revision ID: 8d41e6b2c915
Revises: 3f9c2a71b0de
Create Date: 2026-10-19 14:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d41e6b2c915'
down_revision: Union[str, Sequence[str], None] = '3f9c2a71b0de'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "bookings",
        sa.Column("disbursement_status", sa.String(50), nullable=False, server_default="pending"),
    )

    op.create_table(
        "disbursements",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("operator_id", sa.UUID(), sa.ForeignKey("operators.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("booking_id", sa.UUID(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("method", sa.String(50), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by", sa.UUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_disbursements_operator_id", "disbursements", ["operator_id"])
    op.create_index("ix_disbursements_booking_id", "disbursements", ["booking_id"])
    op.create_index("ix_disbursements_status", "disbursements", ["status"])


def downgrade() -> None:
    op.drop_table("disbursements")
    op.drop_column("bookings", "disbursement_status")
