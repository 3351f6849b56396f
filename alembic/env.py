from __future__ import annotations

import asyncio
from logging.config import fileConfig
from typing import Any, Dict
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from alembic import context
from sqlalchemy import MetaData, pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

import app.models  # noqa: F401  registers every table on Base.metadata
from app.core.settings import settings
from app.database import Base

TARGET_METADATA: MetaData = Base.metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# asyncpg.connect rejects these libpq-style query arguments
UNSUPPORTED_QUERY_ARGS = {"sslmode", "channel_binding"}


def _normalize_db_url(url: str) -> str:
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    parsed = urlparse(url)
    if parsed.query:
        query = [
            (k, v)
            for k, v in parse_qsl(parsed.query, keep_blank_values=True)
            if k.lower() not in UNSUPPORTED_QUERY_ARGS
        ]
        url = urlunparse(parsed._replace(query=urlencode(query)))
    return url


# `-x dburl=...` wins over alembic.ini, which wins over application settings
x_args: Dict[str, str] = context.get_x_argument(as_dictionary=True)
if x_args.get("dburl"):
    config.set_main_option("sqlalchemy.url", _normalize_db_url(x_args["dburl"]))
elif not config.get_main_option("sqlalchemy.url"):
    config.set_main_option(
        "sqlalchemy.url", _normalize_db_url(settings.SQLALCHEMY_DATABASE_URI)
    )


def _configure_kwargs(url: str) -> Dict[str, Any]:
    return {
        "target_metadata": TARGET_METADATA,
        "render_as_batch": url.startswith("sqlite"),
        "compare_type": True,
        "compare_server_default": True,
    }


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url") or ""
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        **_configure_kwargs(str(connection.engine.url)),
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    url = config.get_main_option("sqlalchemy.url") or ""
    connect_args: Dict[str, Any] = {}
    if url.startswith("postgresql+asyncpg://") and x_args.get("ssl") == "true":
        connect_args["ssl"] = True
    connectable = create_async_engine(
        url, poolclass=pool.NullPool, connect_args=connect_args
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
