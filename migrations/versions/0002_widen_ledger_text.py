"""widen ledger description and account labels

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19 16:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("transactions") as batch:
        batch.alter_column(
            "description",
            existing_type=sa.String(length=500),
            type_=sa.Text(),
            existing_nullable=False,
        )
        for column in ("from_account", "to_account"):
            batch.alter_column(
                column,
                existing_type=sa.String(length=100),
                type_=sa.String(length=120),
                existing_nullable=True,
            )


def downgrade() -> None:
    with op.batch_alter_table("transactions") as batch:
        for column in ("from_account", "to_account"):
            batch.alter_column(
                column,
                existing_type=sa.String(length=120),
                type_=sa.String(length=100),
                existing_nullable=True,
            )
        batch.alter_column(
            "description",
            existing_type=sa.Text(),
            type_=sa.String(length=500),
            existing_nullable=False,
        )
