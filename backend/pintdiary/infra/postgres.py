"""Connection pool for the Postgres document store.

The pool is opened lazily by the first caller; concurrent first callers share
one ``create_pool`` call.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import asyncpg

from pintdiary.settings import settings

_pool: Optional[asyncpg.pool.Pool] = None
_pool_lock = asyncio.Lock()


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	async with _pool_lock:
		if _pool is None:
			_pool = await asyncpg.create_pool(
				dsn=settings.postgres_url,
				min_size=settings.postgres_min_pool_size,
				max_size=max(settings.postgres_min_pool_size, settings.postgres_max_pool_size, 1),
				command_timeout=settings.postgres_command_timeout_seconds,
			)
	return _pool


async def get_pool() -> asyncpg.pool.Pool:
	return _pool if _pool is not None else await init_pool()


async def close_pool() -> None:
	global _pool
	async with _pool_lock:
		pool, _pool = _pool, None
	if pool is not None:
		await pool.close()
