"""add anchor day to recurring schedules

Revision ID: 002
Revises: 001
Create Date: 2026-10-20 10:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Existing rows keep NULL and advance from their stored day
    with op.batch_alter_table("income_sources") as batch_op:
        batch_op.add_column(sa.Column("anchor_day", sa.Integer(), nullable=True))
    with op.batch_alter_table("expenses") as batch_op:
        batch_op.add_column(sa.Column("anchor_day", sa.Integer(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("expenses") as batch_op:
        batch_op.drop_column("anchor_day")
    with op.batch_alter_table("income_sources") as batch_op:
        batch_op.drop_column("anchor_day")
