"""
Allow at most one COMPLETED payment per booking.

Revision ID: 20261017_unique_completed_payment
Revises: 20261001_initial_schema
Create Date: 2026-10-17
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from typing import Union

# revision identifiers, used by Alembic.
revision: str = '20261017_unique_completed_payment'
down_revision: Union[str, None] = '20261001_initial_schema'
branch_labels = None
depends_on = None

COMPLETED_ONLY = sa.text("status = 'COMPLETED'")


def upgrade() -> None:
    op.create_index(
        'uq_payments_booking_completed',
        'payments',
        ['booking_id'],
        unique=True,
        sqlite_where=COMPLETED_ONLY,
        postgresql_where=COMPLETED_ONLY,
    )


def downgrade() -> None:
    op.drop_index('uq_payments_booking_completed', table_name='payments')
