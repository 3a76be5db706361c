"""
Alembic migration environment for the reservation schema.

The URL comes from settings (DATABASE_URL_SYNC) unless overridden on the
command line with `alembic -x db_url=... upgrade head`. SQLite targets run in
batch mode so ALTERs on the constrained tables can be replayed locally.
"""

from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from surfclub.db.base import Base
import surfclub.models  # noqa: F401 - registers every table on Base.metadata
from surfclub.core.config import get_settings

config = context.config

db_url = context.get_x_argument(as_dictionary=True).get("db_url") or get_settings().DATABASE_URL_SYNC
config.set_main_option("sqlalchemy.url", db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure_options(url: str) -> dict:
    # Capacity ceilings and counters live in CHECK constraints and server defaults
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "compare_server_default": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit the DDL as a SQL script for review by the DBA."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_options(db_url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
