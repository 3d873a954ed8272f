"""Alembic environment for the Quorum schema.

The database URL comes from ``ALEMBIC_URL`` when set, otherwise from the
sqlalchemy.url option, otherwise from the application settings.
"""
from __future__ import annotations

import os
from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import engine_from_config, pool

import quorum.models  # noqa: F401
from quorum.core.settings import settings
from quorum.db.session import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

migration_url = os.getenv("ALEMBIC_URL") or config.get_main_option("sqlalchemy.url")
if not migration_url:
    migration_url = settings.database_url_sync
config.set_main_option("sqlalchemy.url", migration_url)

target_metadata = Base.metadata


def include_object(obj, name, type_, reflected, compare_to):  # type: ignore[no-untyped-def]
    """Skip the version table and reflected tables Quorum does not own."""
    if type_ == "table":
        return name != "alembic_version" and (not reflected or name in target_metadata.tables)
    return True


def _context_options(url: str) -> dict[str, Any]:
    # SQLite cannot ALTER most constraints in place; batch mode recreates tables.
    return {
        "target_metadata": target_metadata,
        "include_object": include_object,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout without connecting."""
    context.configure(
        url=migration_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_context_options(migration_url),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a short-lived connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, **_context_options(migration_url))

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
