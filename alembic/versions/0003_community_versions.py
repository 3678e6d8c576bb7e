"""Add community versions and partition folders and notes by version

Creates the community_versions table, adds version_id to folders and notes,
and assigns all existing content to a default "v1.0" version (reusing an
existing "v1.0" or the oldest version if one is already present).

Revision ID: 0003_community_versions
Revises: 0002_trash_columns
Create Date: 2026-03-02 10:47:15.902361

"""
from datetime import datetime
from typing import Sequence, Union
import uuid

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0003_community_versions"
down_revision: Union[str, None] = "0002_trash_columns"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEFAULT_VERSION_NAME = "v1.0"
TABLES = ("folders", "notes")


def upgrade() -> None:
    op.create_table(
        "community_versions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index(
        op.f("ix_community_versions_created_by"), "community_versions", ["created_by"], unique=False
    )
    op.create_index(
        op.f("ix_community_versions_created_at"), "community_versions", ["created_at"], unique=False
    )

    for table in TABLES:
        op.add_column(table, sa.Column("version_id", sa.Uuid(), nullable=True))
        op.create_foreign_key(
            f"fk_{table}_version_id",
            table,
            "community_versions",
            ["version_id"],
            ["id"],
            ondelete="SET NULL",
        )
        op.create_index(op.f(f"ix_{table}_version_id"), table, ["version_id"], unique=False)

    op.create_index(
        "ix_folders_owner_version_deleted",
        "folders",
        ["owner_id", "version_id", "is_deleted"],
        unique=False,
    )
    op.create_index(
        "ix_folders_version_deleted", "folders", ["version_id", "is_deleted"], unique=False
    )
    op.create_index(
        "ix_notes_owner_version_deleted",
        "notes",
        ["owner_id", "version_id", "is_deleted"],
        unique=False,
    )
    op.create_index("ix_notes_folder_version", "notes", ["folder_id", "version_id"], unique=False)

    _assign_existing_content()


def _assign_existing_content() -> None:
    """Stamp all unversioned folders and notes with the default version."""
    conn = op.get_bind()

    version_id = conn.execute(
        sa.text(
            "SELECT id FROM community_versions "
            "ORDER BY CASE WHEN name = :name THEN 0 ELSE 1 END, created_at ASC LIMIT 1"
        ),
        {"name": DEFAULT_VERSION_NAME},
    ).scalar()

    if version_id is None:
        admin_id = conn.execute(
            sa.text(
                "SELECT id FROM users WHERE role = 'admin' ORDER BY created_at ASC LIMIT 1"
            )
        ).scalar()
        version_id = uuid.uuid4()
        now = datetime.utcnow()
        versions = sa.table(
            "community_versions",
            sa.column("id", sa.Uuid()),
            sa.column("name", sa.String()),
            sa.column("description", sa.Text()),
            sa.column("created_by", sa.Uuid()),
            sa.column("created_at", sa.DateTime()),
            sa.column("updated_at", sa.DateTime()),
        )
        op.execute(
            versions.insert().values(
                id=version_id,
                name=DEFAULT_VERSION_NAME,
                description="Initial version",
                created_by=admin_id,
                created_at=now,
                updated_at=now,
            )
        )

    for table in TABLES:
        content = sa.table(table, sa.column("version_id", sa.Uuid()))
        op.execute(
            content.update()
            .where(content.c.version_id.is_(None))
            .values(version_id=version_id)
        )


def downgrade() -> None:
    op.drop_index("ix_notes_folder_version", table_name="notes")
    op.drop_index("ix_notes_owner_version_deleted", table_name="notes")
    op.drop_index("ix_folders_version_deleted", table_name="folders")
    op.drop_index("ix_folders_owner_version_deleted", table_name="folders")

    for table in reversed(TABLES):
        op.drop_index(op.f(f"ix_{table}_version_id"), table_name=table)
        op.drop_constraint(f"fk_{table}_version_id", table, type_="foreignkey")
        op.drop_column(table, "version_id")

    op.drop_index(op.f("ix_community_versions_created_at"), table_name="community_versions")
    op.drop_index(op.f("ix_community_versions_created_by"), table_name="community_versions")
    op.drop_table("community_versions")
