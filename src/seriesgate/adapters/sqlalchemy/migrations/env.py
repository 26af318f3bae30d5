"""Alembic environment for seriesgate."""

from __future__ import annotations

import logging

from alembic import context
from sqlalchemy import create_engine, pool

from seriesgate.adapters.sqlalchemy import mapper_registry, start_mappers
from seriesgate.adapters.sqlalchemy.unit_of_work import engine_options
from seriesgate.config import DatabaseConfig, get_database_config

config = context.config

if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)

log = logging.getLogger("alembic.env")

start_mappers()

target_metadata = mapper_registry.metadata

CONFIGURE_OPTIONS = {
    "target_metadata": target_metadata,
    "render_as_batch": True,
    "compare_type": True,
    "compare_server_default": True,
}


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def run_migrations_offline() -> None:
    context.configure(url=_database_url(), literal_binds=True, **CONFIGURE_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    existing_connection = config.attributes.get("connection")
    if existing_connection is not None:
        context.configure(connection=existing_connection, **CONFIGURE_OPTIONS)
        with context.begin_transaction():
            context.run_migrations()
        return

    defaults = get_database_config()
    database_config = DatabaseConfig(
        uri=_database_url(), statement_timeout_seconds=defaults.statement_timeout_seconds
    )
    engine = create_engine(
        database_config.uri, poolclass=pool.NullPool, **engine_options(database_config)
    )
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **CONFIGURE_OPTIONS)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    log.info("Running migrations offline")
    run_migrations_offline()
else:
    run_migrations_online()
