from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from pintdiary.domain.exceptions import CollaboratorUnavailable, InvalidArgument, NotFound
from pintdiary.infra.store.base import MAX_OWNERS_PER_QUERY, decode_cursor, encode_cursor
from pintdiary.infra.store.redis_store import RedisEntityStore


async def _create_pints(store, owner: str, count: int, **fields):
	created = []
	for idx in range(count):
		created.append(await store.create("pints", {"user_id": owner, "pub_name": f"Pub {idx}", "rating": 4, **fields}))
	return created


@pytest.mark.asyncio
async def test_create_assigns_id_and_timestamp(store):
	record = await store.create("pints", {"user_id": "alice", "pub_name": "The Stag", "rating": 5, "id": "ignored"})
	assert record["id"] != "ignored"
	assert record["created_at"].tzinfo is not None

	loaded = await store.get("pints", record["id"])
	assert loaded == record


@pytest.mark.asyncio
async def test_get_missing_returns_none(store):
	assert await store.get("pints", "nope") is None


@pytest.mark.asyncio
async def test_put_upserts_and_keeps_created_at(store):
	first = await store.put("users", "alice", {"display_name": "Alice", "total_pints": 0})
	second = await store.put("users", "alice", {"display_name": "Alice B", "total_pints": 3})
	assert second["created_at"] == first["created_at"]
	loaded = await store.get("users", "alice")
	assert loaded["display_name"] == "Alice B"
	assert loaded["total_pints"] == 3


@pytest.mark.asyncio
async def test_update_merges_fields_and_requires_existing_record(store):
	created = await store.create("pints", {"user_id": "alice", "pub_name": "The Stag", "rating": 3})
	await store.update("pints", created["id"], {"rating": 5, "created_at": "2000-01-01T00:00:00+00:00"})
	loaded = await store.get("pints", created["id"])
	assert loaded["rating"] == 5
	assert loaded["pub_name"] == "The Stag"
	assert loaded["created_at"] == created["created_at"]

	with pytest.raises(NotFound):
		await store.update("pints", "missing", {"rating": 1})


@pytest.mark.asyncio
async def test_query_by_owner_orders_newest_first_with_exact_count(store):
	created = await _create_pints(store, "alice", 4)
	await _create_pints(store, "bob", 2)

	page = await store.query_by_owner("pints", "alice")
	assert [item["id"] for item in page.items] == [record["id"] for record in reversed(created)]
	assert page.exact_count == 4


@pytest.mark.asyncio
async def test_cursor_pagination_never_repeats_or_skips(store):
	created = await _create_pints(store, "alice", 7)
	seen = []
	cursor = None
	while True:
		page = await store.query_by_owner("pints", "alice", limit=3, cursor=cursor)
		seen.extend(item["id"] for item in page.items)
		if len(page.items) < 3:
			break
		cursor = page.next_cursor
	assert seen == [record["id"] for record in reversed(created)]


@pytest.mark.asyncio
async def test_identical_timestamps_break_ties_by_id(fake_redis):
	fixed = datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc)
	store = RedisEntityStore(clock=lambda: fixed)
	created = await _create_pints(store, "alice", 5)
	expected = sorted((record["id"] for record in created), reverse=True)

	first = await store.query_by_owner("pints", "alice", limit=2)
	rest = await store.query_by_owner("pints", "alice", cursor=first.next_cursor)
	assert [item["id"] for item in first.items + rest.items] == expected


@pytest.mark.asyncio
async def test_query_by_owner_set_merges_owners(store):
	alice = await _create_pints(store, "alice", 2)
	bob = await _create_pints(store, "bob", 2)
	await _create_pints(store, "carol", 1)

	page = await store.query_by_owner_set("pints", ["alice", "bob", "alice"], limit=3)
	assert [item["id"] for item in page.items] == [bob[1]["id"], bob[0]["id"], alice[1]["id"]]
	assert page.exact_count == 4

	rest = await store.query_by_owner_set("pints", ["alice", "bob"], cursor=page.next_cursor)
	assert [item["id"] for item in rest.items] == [alice[0]["id"]]


@pytest.mark.asyncio
async def test_query_by_owner_set_caps_owner_count(store):
	owners = [f"user-{idx}" for idx in range(MAX_OWNERS_PER_QUERY + 1)]
	with pytest.raises(InvalidArgument) as excinfo:
		await store.query_by_owner_set("pints", owners)
	assert excinfo.value.reason == "too_many_owners"

	page = await store.query_by_owner_set("pints", owners[:MAX_OWNERS_PER_QUERY])
	assert page.items == []


@pytest.mark.asyncio
async def test_query_rejects_collections_without_owner_index(store):
	with pytest.raises(InvalidArgument):
		await store.query_by_owner("users", "alice")


@pytest.mark.asyncio
async def test_delete_removes_record_from_listing(store):
	created = await _create_pints(store, "alice", 2)
	await store.delete("pints", created[0]["id"])
	page = await store.query_by_owner("pints", "alice")
	assert [item["id"] for item in page.items] == [created[1]["id"]]
	assert page.exact_count == 1
	assert await store.get("pints", created[0]["id"]) is None
	await store.delete("pints", created[0]["id"])


@pytest.mark.asyncio
async def test_increment_field(store):
	await store.put("users", "alice", {"total_pints": 2})
	assert await store.increment_field("users", "alice", "total_pints", 1) == 3
	assert await store.increment_field("users", "alice", "social_pints", 1) == 1
	assert await store.increment_field("users", "alice", "total_pints", -1) == 2
	assert (await store.get("users", "alice"))["total_pints"] == 2

	with pytest.raises(NotFound):
		await store.increment_field("users", "ghost", "total_pints", 1)


@pytest.mark.asyncio
async def test_union_append_plain_and_keyed(store):
	await store.put("users", "alice", {"friend_ids": ["bob"], "badges": []})
	assert await store.union_append("users", "alice", "friend_ids", ["bob", "carol", "carol"]) == ["bob", "carol"]

	first = {"badge_id": "first_friend", "earned_at": "2024-03-01T12:00:00+00:00"}
	again = {"badge_id": "first_friend", "earned_at": "2024-04-01T12:00:00+00:00"}
	assert await store.union_append("users", "alice", "badges", [first], key="badge_id") == [first]
	assert await store.union_append("users", "alice", "badges", [again], key="badge_id") == [first]

	with pytest.raises(NotFound):
		await store.union_append("users", "ghost", "friend_ids", ["bob"])


@pytest.mark.asyncio
async def test_backend_errors_become_collaborator_unavailable(store, fake_redis, monkeypatch):
	monkeypatch.setattr(fake_redis, "hgetall", AsyncMock(side_effect=RedisConnectionError("down")))
	with pytest.raises(CollaboratorUnavailable):
		await store.get("users", "alice")


@pytest.mark.asyncio
async def test_ping(store):
	assert await store.ping() is True


def test_cursor_round_trip_and_malformed_cursor():
	moment = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
	cursor = decode_cursor(encode_cursor(moment, "01HX"))
	assert cursor.created_at == moment
	assert cursor.entity_id == "01HX"

	for bad in ("not-base64!!", "e30=", ""):
		with pytest.raises(InvalidArgument):
			decode_cursor(bad)
