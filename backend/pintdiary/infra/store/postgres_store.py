"""Postgres-backed entity store: one JSONB ``documents`` table for every collection."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Mapping, Optional, Sequence

import asyncpg

from pintdiary.domain.exceptions import CollaboratorUnavailable, NotFound
from pintdiary.infra.postgres import get_pool
from pintdiary.infra.store.base import (
	OWNER_FIELDS,
	Clock,
	Page,
	check_owner_set,
	cursor_for,
	decode_cursor,
	json_default,
	merge_union,
	new_id,
	owner_field,
	strip_reserved,
	utc_now,
)
from pintdiary.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
	collection TEXT NOT NULL,
	id TEXT NOT NULL,
	owner_id TEXT,
	created_at TIMESTAMPTZ NOT NULL,
	body JSONB NOT NULL DEFAULT '{}'::jsonb,
	PRIMARY KEY (collection, id)
);
CREATE INDEX IF NOT EXISTS documents_owner_created_idx
	ON documents (collection, owner_id, created_at DESC, id DESC);
"""

_UPSERT_SQL = """
INSERT INTO documents (collection, id, owner_id, created_at, body)
VALUES ($1, $2, $3, $4, $5::jsonb)
ON CONFLICT (collection, id)
DO UPDATE SET owner_id = EXCLUDED.owner_id, body = EXCLUDED.body
RETURNING created_at
"""

_INSERT_SQL = """
INSERT INTO documents (collection, id, owner_id, created_at, body)
VALUES ($1, $2, $3, $4, $5::jsonb)
"""

_INCREMENT_SQL = """
UPDATE documents
SET body = jsonb_set(body, ARRAY[$3::text], to_jsonb(COALESCE((body->>$3)::bigint, 0) + $4::bigint))
WHERE collection = $1 AND id = $2
RETURNING (body->>$3)::bigint AS value
"""


def _dumps(value: Any) -> str:
	return json.dumps(value, default=json_default)


def _to_record(row: asyncpg.Record) -> dict[str, Any]:
	body = row["body"]
	record = json.loads(body) if isinstance(body, str) else dict(body or {})
	record["id"] = row["id"]
	record["created_at"] = row["created_at"]
	return record


class PostgresEntityStore:
	"""Document store over a single JSONB table keyed by (collection, id)."""

	backend = "postgres"

	def __init__(self, *, clock: Clock = utc_now) -> None:
		self._clock = clock

	@asynccontextmanager
	async def _connection(self, operation: str):
		try:
			pool = await get_pool()
			async with pool.acquire() as conn:
				yield conn
		except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as exc:
			obs_metrics.inc_store_error(self.backend, operation)
			logger.warning("Postgres store %s failed: %s", operation, exc)
			raise CollaboratorUnavailable(f"store_{operation}") from exc

	async def ensure_schema(self) -> None:
		async with self._connection("schema") as conn:
			await conn.execute(SCHEMA_SQL)

	@staticmethod
	def _owner_of(collection: str, record: Mapping[str, Any]) -> Optional[str]:
		field_name = OWNER_FIELDS.get(collection)
		if not field_name or not record.get(field_name):
			return None
		return str(record[field_name])

	async def get(self, collection: str, entity_id: str) -> Optional[dict[str, Any]]:
		async with self._connection("get") as conn:
			row = await conn.fetchrow(
				"SELECT id, created_at, body FROM documents WHERE collection = $1 AND id = $2",
				collection,
				entity_id,
			)
		return _to_record(row) if row else None

	async def put(self, collection: str, entity_id: str, record: Mapping[str, Any]) -> dict[str, Any]:
		body = strip_reserved(record)
		async with self._connection("put") as conn:
			created_at = await conn.fetchval(
				_UPSERT_SQL,
				collection,
				entity_id,
				self._owner_of(collection, body),
				self._clock(),
				_dumps(body),
			)
		body["id"] = entity_id
		body["created_at"] = created_at
		return body

	async def create(self, collection: str, record: Mapping[str, Any]) -> dict[str, Any]:
		body = strip_reserved(record)
		entity_id = new_id()
		created_at = self._clock()
		async with self._connection("create") as conn:
			await conn.execute(
				_INSERT_SQL,
				collection,
				entity_id,
				self._owner_of(collection, body),
				created_at,
				_dumps(body),
			)
		body["id"] = entity_id
		body["created_at"] = created_at
		return body

	async def update(self, collection: str, entity_id: str, fields: Mapping[str, Any]) -> None:
		changes = strip_reserved(fields)
		async with self._connection("update") as conn:
			status = await conn.execute(
				"UPDATE documents SET body = body || $3::jsonb WHERE collection = $1 AND id = $2",
				collection,
				entity_id,
				_dumps(changes),
			)
		if status.endswith(" 0"):
			raise NotFound(f"{collection}_not_found")

	async def delete(self, collection: str, entity_id: str) -> None:
		async with self._connection("delete") as conn:
			await conn.execute(
				"DELETE FROM documents WHERE collection = $1 AND id = $2",
				collection,
				entity_id,
			)

	async def increment_field(self, collection: str, entity_id: str, field_name: str, delta: int) -> int:
		async with self._connection("increment") as conn:
			row = await conn.fetchrow(_INCREMENT_SQL, collection, entity_id, field_name, int(delta))
		if row is None:
			raise NotFound(f"{collection}_not_found")
		return int(row["value"])

	async def union_append(
		self,
		collection: str,
		entity_id: str,
		field_name: str,
		elements: Sequence[Any],
		*,
		key: Optional[str] = None,
	) -> list[Any]:
		async with self._connection("union_append") as conn:
			async with conn.transaction():
				row = await conn.fetchrow(
					"SELECT body->$3 AS current FROM documents WHERE collection = $1 AND id = $2 FOR UPDATE",
					collection,
					entity_id,
					field_name,
				)
				if row is None:
					raise NotFound(f"{collection}_not_found")
				current = json.loads(row["current"]) if row["current"] else []
				merged = merge_union(current or [], elements, key=key)
				await conn.execute(
					"UPDATE documents SET body = jsonb_set(body, ARRAY[$3::text], $4::jsonb) "
					"WHERE collection = $1 AND id = $2",
					collection,
					entity_id,
					field_name,
					_dumps(merged),
				)
		return merged

	async def _query(
		self,
		collection: str,
		owners: list[str],
		limit: Optional[int],
		cursor: Optional[str],
		operation: str,
	) -> Page:
		after = decode_cursor(cursor) if cursor else None
		params: list[Any] = [collection, owners]
		clauses = ["collection = $1", "owner_id = ANY($2::text[])"]
		if after is not None:
			params.extend([after.created_at, after.entity_id])
			clauses.append(f"(created_at, id) < (${len(params) - 1}, ${len(params)})")
		sql = (
			f"SELECT id, created_at, body FROM documents WHERE {' AND '.join(clauses)} "
			"ORDER BY created_at DESC, id DESC"
		)
		if limit is not None:
			params.append(int(limit))
			sql += f" LIMIT ${len(params)}"
		async with self._connection(operation) as conn:
			rows = await conn.fetch(sql, *params)
			total = await conn.fetchval(
				"SELECT COUNT(*) FROM documents WHERE collection = $1 AND owner_id = ANY($2::text[])",
				collection,
				owners,
			)
		items = [_to_record(row) for row in rows]
		next_cursor = cursor_for(items[-1]) if items else None
		return Page(items=items, next_cursor=next_cursor, exact_count=int(total or 0))

	async def query_by_owner(
		self,
		collection: str,
		owner_id: str,
		*,
		limit: Optional[int] = None,
		cursor: Optional[str] = None,
	) -> Page:
		owner_field(collection)
		return await self._query(collection, [str(owner_id)], limit, cursor, "query")

	async def query_by_owner_set(
		self,
		collection: str,
		owner_ids: Sequence[str],
		*,
		limit: Optional[int] = None,
		cursor: Optional[str] = None,
	) -> Page:
		owner_field(collection)
		owners = check_owner_set(owner_ids)
		if not owners:
			return Page()
		return await self._query(collection, owners, limit, cursor, "query_set")

	async def ping(self) -> bool:
		async with self._connection("ping") as conn:
			return await conn.fetchval("SELECT 1") == 1
