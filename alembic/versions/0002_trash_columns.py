"""Add soft-delete (trash) columns to folders and notes

Existing rows start out active. Until this migration runs the application
detects the missing columns and deletes permanently instead of trashing.

Revision ID: 0002_trash_columns
Revises: 0001_base_schema
Create Date: 2026-02-11 14:03:27.550912

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002_trash_columns"
down_revision: Union[str, None] = "0001_base_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLES = ("folders", "notes")


def upgrade() -> None:
    for table in TABLES:
        op.add_column(
            table,
            sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        )
        op.add_column(table, sa.Column("deleted_at", sa.DateTime(), nullable=True))
        op.create_index(op.f(f"ix_{table}_deleted_at"), table, ["deleted_at"], unique=False)


def downgrade() -> None:
    for table in reversed(TABLES):
        op.drop_index(op.f(f"ix_{table}_deleted_at"), table_name=table)
        op.drop_column(table, "deleted_at")
        op.drop_column(table, "is_deleted")
