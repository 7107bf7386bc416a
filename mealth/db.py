"""
Database connection pool.

Only used when STORE_BACKEND=postgres. The document store is the single
consumer; nothing else talks to Postgres directly.
"""

from __future__ import annotations

import asyncpg

from livesync.postgres_store import init_connection
from mealth import config

pool: asyncpg.Pool | None = None


async def init_pool() -> asyncpg.Pool:
    """
    Initialize the connection pool.
    Called once at application startup.
    """
    global pool
    pool = await asyncpg.create_pool(
        dsn=config.settings.DATABASE_URL,
        min_size=2,
        max_size=20,
        command_timeout=60,
        init=init_connection,
    )
    return pool


async def close_pool() -> None:
    """
    Close the connection pool.
    Called at application shutdown.
    """
    global pool
    if pool is not None:
        await pool.close()
        pool = None
