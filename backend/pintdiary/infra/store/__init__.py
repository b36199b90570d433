"""Entity store selection.

Services call :func:`get_store`; the backend is chosen from ``settings.store_backend``
on first use and can be replaced with :func:`set_store` (tests, alternate wiring).
"""

from __future__ import annotations

from typing import Optional

from pintdiary.infra.store.base import MAX_OWNERS_PER_QUERY, EntityStore, Page
from pintdiary.settings import settings

_store: Optional[EntityStore] = None


def build_store(backend: Optional[str] = None) -> EntityStore:
	name = (backend or settings.store_backend).lower()
	if name == "postgres":
		from pintdiary.infra.store.postgres_store import PostgresEntityStore

		return PostgresEntityStore()
	if name == "redis":
		from pintdiary.infra.store.redis_store import RedisEntityStore

		return RedisEntityStore()
	raise ValueError(f"unknown store backend: {name}")


def get_store() -> EntityStore:
	global _store
	if _store is None:
		_store = build_store()
	return _store


def set_store(store: Optional[EntityStore]) -> None:
	global _store
	_store = store


__all__ = ["EntityStore", "MAX_OWNERS_PER_QUERY", "Page", "build_store", "get_store", "set_store"]
