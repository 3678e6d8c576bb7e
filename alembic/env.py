"""Alembic environment configuration for database migrations.

This module configures Alembic to work with our SQLAlchemy models
and the PostgreSQL database connection (sync psycopg2 URL).
"""

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

# Add the project root to the Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Import our application's database configuration
from notevault.config import settings
from notevault.database import Base

# Import all models to ensure they are registered with Base.metadata
# This is required for autogenerate to detect all tables
from notevault.models import (  # noqa: F401
    CommunityVersion,
    Folder,
    Note,
    NoteVersion,
    User,
    UserApprovalRequest,
)

# Alembic Config object - provides access to .ini file values
config = context.config

# Interpret the config file for Python logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Set the SQLAlchemy URL from our application config
# This overrides the dummy URL in alembic.ini
config.set_main_option("sqlalchemy.url", settings.sync_database_url)

# Target metadata for 'autogenerate' support
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    This configures the context with just a URL and not an Engine, so no
    DBAPI is needed. Calls to context.execute() emit SQL to the script output.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            # Enable autogenerate type comparison
            compare_type=True,
            # Enable server default comparison
            compare_server_default=True,
            include_object=include_object,
        )

        with context.begin_transaction():
            context.run_migrations()


def include_object(object, name, type_, reflected, compare_to):
    """Filter which database objects to include in autogenerate.

    Returns:
        bool: True to include the object in migrations
    """
    # Exclude PostgreSQL system tables
    if type_ == "table" and (name.startswith("pg_") or name.startswith("information_schema")):
        return False

    return True


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
