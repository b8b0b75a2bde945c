"""Alembic migration environment for the staffdesk schema.

The database URL comes from ``STAFFDESK_DATABASE_URL_SYNC`` (via
``staffdesk.config.settings``) unless ``-x url=...`` is passed on the
command line.  The ``sqlalchemy.url`` in alembic.ini is not used.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from staffdesk.config.settings import get_settings
from staffdesk.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("url") or get_settings().database_url_sync


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(database_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
