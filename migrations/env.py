"""
Alembic env.py — reuses the application's settings to locate PostgreSQL.

  ENVIRONMENT=development alembic upgrade head
  ENVIRONMENT=production DB_HOST=... alembic upgrade head
"""
import logging.config

from alembic import context
from sqlalchemy import create_engine, pool

from complaint_tracker.core.config import get_settings

config = context.config
if config.config_file_name is not None:
    logging.config.fileConfig(config.config_file_name)

# Migrations run synchronously through psycopg2
url = get_settings().database_url.replace("+asyncpg", "+psycopg2")

if context.is_offline_mode():
    context.configure(url=url, target_metadata=None, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()
else:
    with create_engine(url, poolclass=pool.NullPool).connect() as connection:
        context.configure(connection=connection, target_metadata=None)
        with context.begin_transaction():
            context.run_migrations()
