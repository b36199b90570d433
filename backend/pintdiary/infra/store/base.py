"""Entity store contract shared by the Redis and Postgres backends.

Records are plain dicts of JSON-compatible values. The store owns two fields on
every record: ``id`` (a ULID when the store assigns it) and ``created_at``
(timezone-aware, stamped once on first write and never changed afterwards).

Owner-scoped listings are ordered by ``created_at`` descending, then ``id``
descending, and paginate with an opaque keyset cursor.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol, Sequence

import ulid

from pintdiary.domain.exceptions import InvalidArgument

# "owner in list" queries accept at most this many owners
MAX_OWNERS_PER_QUERY = 30

# Collections that are listed by owner, and the field holding the owner id
OWNER_FIELDS: dict[str, str] = {
	"pints": "user_id",
}

RESERVED_FIELDS = ("id", "created_at")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
	return datetime.now(timezone.utc)


def new_id() -> str:
	return str(ulid.new())


def json_default(value: Any) -> Any:
	"""``json.dumps`` fallback for the non-JSON values records may carry."""
	if isinstance(value, datetime):
		return value.isoformat()
	if isinstance(value, (set, frozenset, tuple)):
		return list(value)
	raise TypeError(f"unserialisable:{type(value).__name__}")


@dataclass(slots=True)
class Page:
	"""One page of an ordered owner query."""

	items: list[dict[str, Any]] = field(default_factory=list)
	next_cursor: Optional[str] = None
	exact_count: int = 0


@dataclass(slots=True, frozen=True)
class Cursor:
	"""Keyset position: the last record returned by the previous page."""

	created_at: datetime
	entity_id: str

	def sort_key(self) -> tuple[float, str]:
		return (self.created_at.timestamp(), self.entity_id)


def encode_cursor(created_at: datetime, entity_id: str) -> str:
	payload = {"t": created_at.isoformat(), "id": entity_id}
	raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
	return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_cursor(value: str) -> Cursor:
	try:
		raw = base64.urlsafe_b64decode(value.encode("ascii"))
		payload = json.loads(raw.decode("utf-8"))
		created_at = datetime.fromisoformat(payload["t"])
		entity_id = str(payload["id"])
	except (ValueError, KeyError, TypeError, UnicodeError, binascii.Error) as exc:
		raise InvalidArgument("invalid_cursor") from exc
	if not entity_id:
		raise InvalidArgument("invalid_cursor")
	if created_at.tzinfo is None:
		created_at = created_at.replace(tzinfo=timezone.utc)
	return Cursor(created_at=created_at, entity_id=entity_id)


def cursor_for(record: Mapping[str, Any]) -> str:
	return encode_cursor(record["created_at"], str(record["id"]))


def owner_field(collection: str) -> str:
	try:
		return OWNER_FIELDS[collection]
	except KeyError:
		raise InvalidArgument(f"not_owner_indexed:{collection}") from None


def check_owner_set(owner_ids: Sequence[str]) -> list[str]:
	"""De-duplicate owner ids (keeping order) and enforce the per-query cap."""
	unique = list(dict.fromkeys(str(owner_id) for owner_id in owner_ids))
	if len(unique) > MAX_OWNERS_PER_QUERY:
		raise InvalidArgument("too_many_owners")
	return unique


def strip_reserved(record: Mapping[str, Any]) -> dict[str, Any]:
	return {key: value for key, value in record.items() if key not in RESERVED_FIELDS}


def merge_union(existing: Iterable[Any], elements: Iterable[Any], key: Optional[str] = None) -> list[Any]:
	"""Append ``elements`` not already present, preserving insertion order.

	With ``key`` the elements are mappings compared on that key only, so an
	element already present under the same key is never replaced.
	"""
	merged = list(existing)
	if key is None:
		for element in elements:
			if element not in merged:
				merged.append(element)
		return merged
	seen = {item.get(key) for item in merged if isinstance(item, Mapping)}
	for element in elements:
		marker = element.get(key)
		if marker in seen:
			continue
		seen.add(marker)
		merged.append(element)
	return merged


class EntityStore(Protocol):
	"""Document store interface consumed by the domain services."""

	backend: str

	async def get(self, collection: str, entity_id: str) -> Optional[dict[str, Any]]:
		...

	async def put(self, collection: str, entity_id: str, record: Mapping[str, Any]) -> dict[str, Any]:
		...

	async def create(self, collection: str, record: Mapping[str, Any]) -> dict[str, Any]:
		...

	async def update(self, collection: str, entity_id: str, fields: Mapping[str, Any]) -> None:
		...

	async def delete(self, collection: str, entity_id: str) -> None:
		...

	async def query_by_owner(
		self,
		collection: str,
		owner_id: str,
		*,
		limit: Optional[int] = None,
		cursor: Optional[str] = None,
	) -> Page:
		...

	async def query_by_owner_set(
		self,
		collection: str,
		owner_ids: Sequence[str],
		*,
		limit: Optional[int] = None,
		cursor: Optional[str] = None,
	) -> Page:
		...

	async def increment_field(self, collection: str, entity_id: str, field_name: str, delta: int) -> int:
		...

	async def union_append(
		self,
		collection: str,
		entity_id: str,
		field_name: str,
		elements: Sequence[Any],
		*,
		key: Optional[str] = None,
	) -> list[Any]:
		...

	async def ping(self) -> bool:
		...
