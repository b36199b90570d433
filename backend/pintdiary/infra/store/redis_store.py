"""Redis-backed entity store.

Layout:
- ``doc:{collection}:{id}``: hash, one JSON-encoded value per record field.
- ``idx:{collection}:{owner_id}``: sorted set of record ids scored by
  ``created_at`` epoch seconds, for owner-indexed collections.

Counter increments and set-union appends run as WATCH/MULTI transactions on
the document key and retry on contention.
"""

from __future__ import annotations

import heapq
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

from redis.exceptions import RedisError, WatchError

from pintdiary.domain.exceptions import CollaboratorUnavailable, NotFound
from pintdiary.infra.redis import redis_client
from pintdiary.infra.store.base import (
	OWNER_FIELDS,
	Clock,
	Cursor,
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

_SCAN_BATCH = 50

ScoredId = tuple[float, str]


def _encode(record: Mapping[str, Any]) -> dict[str, str]:
	return {key: json.dumps(value, default=json_default) for key, value in record.items()}


def _decode(raw: Mapping[str, str]) -> dict[str, Any]:
	record = {key: json.loads(value) for key, value in raw.items()}
	created_at = record.get("created_at")
	if isinstance(created_at, str):
		record["created_at"] = datetime.fromisoformat(created_at)
	return record


def _is_after(score: float, member: str, cursor: Cursor) -> bool:
	cursor_score, cursor_id = cursor.sort_key()
	return score < cursor_score or (score == cursor_score and member < cursor_id)


class RedisEntityStore:
	"""Document store on top of Redis hashes and sorted-set owner indexes."""

	backend = "redis"

	def __init__(self, client=None, *, clock: Clock = utc_now, max_retries: int = 8) -> None:
		self._redis = client if client is not None else redis_client
		self._clock = clock
		self._max_retries = max_retries

	@staticmethod
	def _doc_key(collection: str, entity_id: str) -> str:
		return f"doc:{collection}:{entity_id}"

	@staticmethod
	def _index_key(collection: str, owner_id: str) -> str:
		return f"idx:{collection}:{owner_id}"

	@asynccontextmanager
	async def _guard(self, operation: str):
		try:
			yield
		except (RedisError, OSError) as exc:
			obs_metrics.inc_store_error(self.backend, operation)
			logger.warning("Redis store %s failed: %s", operation, exc)
			raise CollaboratorUnavailable(f"store_{operation}") from exc

	async def _transact(self, key: str, apply: Callable[[Any], Awaitable[Any]]) -> Any:
		"""Run ``apply`` against a pipeline watching ``key``; retry on contention.

		``apply`` performs its reads immediately, then calls ``pipe.multi()`` and
		queues its writes; its return value is returned once EXEC succeeds.
		"""
		for _ in range(self._max_retries):
			async with self._redis.pipeline(transaction=True) as pipe:
				try:
					await pipe.watch(key)
					result = await apply(pipe)
					await pipe.execute()
					return result
				except WatchError:
					continue
		raise CollaboratorUnavailable("store_contention")

	def _queue_index(self, pipe, collection: str, record: Mapping[str, Any]) -> None:
		field_name = OWNER_FIELDS.get(collection)
		if not field_name or not record.get(field_name):
			return
		created_at: datetime = record["created_at"]
		pipe.zadd(
			self._index_key(collection, str(record[field_name])),
			{str(record["id"]): created_at.timestamp()},
		)

	# --- Single-document operations ---------------------------------------

	async def get(self, collection: str, entity_id: str) -> Optional[dict[str, Any]]:
		async with self._guard("get"):
			raw = await self._redis.hgetall(self._doc_key(collection, entity_id))
		if not raw:
			return None
		return _decode(raw)

	async def put(self, collection: str, entity_id: str, record: Mapping[str, Any]) -> dict[str, Any]:
		key = self._doc_key(collection, entity_id)
		async with self._guard("put"):
			existing = await self._redis.hget(key, "created_at")
			created_at = datetime.fromisoformat(json.loads(existing)) if existing else self._clock()
			body = strip_reserved(record)
			body["id"] = entity_id
			body["created_at"] = created_at
			async with self._redis.pipeline(transaction=True) as pipe:
				pipe.delete(key)
				pipe.hset(key, mapping=_encode(body))
				self._queue_index(pipe, collection, body)
				await pipe.execute()
		return body

	async def create(self, collection: str, record: Mapping[str, Any]) -> dict[str, Any]:
		body = strip_reserved(record)
		body["id"] = new_id()
		body["created_at"] = self._clock()
		async with self._guard("create"):
			async with self._redis.pipeline(transaction=True) as pipe:
				pipe.hset(self._doc_key(collection, body["id"]), mapping=_encode(body))
				self._queue_index(pipe, collection, body)
				await pipe.execute()
		return body

	async def update(self, collection: str, entity_id: str, fields: Mapping[str, Any]) -> None:
		key = self._doc_key(collection, entity_id)
		changes = strip_reserved(fields)

		async def _apply(pipe) -> None:
			if not await pipe.exists(key):
				raise NotFound(f"{collection}_not_found")
			pipe.multi()
			if changes:
				pipe.hset(key, mapping=_encode(changes))

		async with self._guard("update"):
			await self._transact(key, _apply)

	async def delete(self, collection: str, entity_id: str) -> None:
		key = self._doc_key(collection, entity_id)
		field_name = OWNER_FIELDS.get(collection)
		async with self._guard("delete"):
			owner_raw = await self._redis.hget(key, field_name) if field_name else None
			async with self._redis.pipeline(transaction=True) as pipe:
				pipe.delete(key)
				if owner_raw:
					pipe.zrem(self._index_key(collection, str(json.loads(owner_raw))), entity_id)
				await pipe.execute()

	async def increment_field(self, collection: str, entity_id: str, field_name: str, delta: int) -> int:
		key = self._doc_key(collection, entity_id)

		async def _apply(pipe) -> int:
			if not await pipe.exists(key):
				raise NotFound(f"{collection}_not_found")
			current = await pipe.hget(key, field_name)
			value = int(json.loads(current) or 0) if current is not None else 0
			value += int(delta)
			pipe.multi()
			pipe.hset(key, field_name, json.dumps(value))
			return value

		async with self._guard("increment"):
			return await self._transact(key, _apply)

	async def union_append(
		self,
		collection: str,
		entity_id: str,
		field_name: str,
		elements: Sequence[Any],
		*,
		key: Optional[str] = None,
	) -> list[Any]:
		doc_key = self._doc_key(collection, entity_id)

		async def _apply(pipe) -> list[Any]:
			if not await pipe.exists(doc_key):
				raise NotFound(f"{collection}_not_found")
			current = await pipe.hget(doc_key, field_name)
			existing = json.loads(current) if current else []
			merged = merge_union(existing or [], elements, key=key)
			pipe.multi()
			pipe.hset(doc_key, field_name, json.dumps(merged, default=json_default))
			return merged

		async with self._guard("union_append"):
			return await self._transact(doc_key, _apply)

	# --- Owner queries -------------------------------------------------------

	async def _scan(self, index_key: str, after: Optional[Cursor], limit: Optional[int]) -> list[ScoredId]:
		max_score: Any = "+inf" if after is None else after.created_at.timestamp()
		if limit is None:
			rows = await self._redis.zrevrangebyscore(index_key, max_score, "-inf", withscores=True)
			return [
				(float(score), str(member))
				for member, score in rows
				if after is None or _is_after(float(score), str(member), after)
			]
		collected: list[ScoredId] = []
		offset = 0
		batch = max(limit, _SCAN_BATCH)
		while len(collected) < limit:
			rows = await self._redis.zrevrangebyscore(
				index_key, max_score, "-inf", start=offset, num=batch, withscores=True
			)
			for member, score in rows:
				if after is not None and not _is_after(float(score), str(member), after):
					continue
				collected.append((float(score), str(member)))
				if len(collected) >= limit:
					break
			if len(rows) < batch:
				break
			offset += batch
		return collected

	async def _load(self, collection: str, ids: Sequence[str]) -> list[dict[str, Any]]:
		if not ids:
			return []
		async with self._redis.pipeline(transaction=False) as pipe:
			for entity_id in ids:
				pipe.hgetall(self._doc_key(collection, entity_id))
			rows = await pipe.execute()
		records: list[dict[str, Any]] = []
		for entity_id, raw in zip(ids, rows):
			if not raw:
				logger.warning("Index entry without document", extra={"collection": collection, "id": entity_id})
				continue
			records.append(_decode(raw))
		return records

	def _page(self, items: list[dict[str, Any]], exact_count: int) -> Page:
		next_cursor = cursor_for(items[-1]) if items else None
		return Page(items=items, next_cursor=next_cursor, exact_count=exact_count)

	async def query_by_owner(
		self,
		collection: str,
		owner_id: str,
		*,
		limit: Optional[int] = None,
		cursor: Optional[str] = None,
	) -> Page:
		owner_field(collection)
		after = decode_cursor(cursor) if cursor else None
		index_key = self._index_key(collection, str(owner_id))
		async with self._guard("query"):
			scored = await self._scan(index_key, after, limit)
			items = await self._load(collection, [member for _, member in scored])
			total = await self._redis.zcard(index_key)
		return self._page(items, int(total))

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
		after = decode_cursor(cursor) if cursor else None
		index_keys = [self._index_key(collection, owner) for owner in owners]
		async with self._guard("query_set"):
			per_owner = [await self._scan(index_key, after, limit) for index_key in index_keys]
			merged = list(heapq.merge(*per_owner, reverse=True))
			if limit is not None:
				merged = merged[:limit]
			items = await self._load(collection, [member for _, member in merged])
			async with self._redis.pipeline(transaction=False) as pipe:
				for index_key in index_keys:
					pipe.zcard(index_key)
				counts = await pipe.execute()
		return self._page(items, sum(int(count) for count in counts))

	async def ping(self) -> bool:
		async with self._guard("ping"):
			return bool(await self._redis.ping())
