"""Alembic environment for the Civic Report schema.

``alembic.ini`` puts ``src/`` on the path. The database URL comes from
``ALEMBIC_URL``, then the ini file, then the application settings, with any
async driver swapped for its sync counterpart.
"""
from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from civic_report.core.settings import settings
from civic_report.db.session import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def database_url() -> str:
    return (
        os.getenv("ALEMBIC_URL")
        or config.get_main_option("sqlalchemy.url")
        or settings.database_url_sync
    )


def _configure(**kwargs: object) -> None:
    url = database_url()
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        # SQLite cannot ALTER most constraints in place.
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


if context.is_offline_mode():
    _configure(url=database_url(), literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()
else:
    with create_engine(database_url(), poolclass=pool.NullPool).connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()
