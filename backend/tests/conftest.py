import os
from datetime import datetime, timedelta, timezone

# Dev mode enables the X-User-* auth headers used by the API tests
os.environ.setdefault("ENV", "development")

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient

from pintdiary.domain.badges import sockets as badge_sockets
from pintdiary.domain.users.models import new_user_record
from pintdiary.infra import postgres
from pintdiary.infra.store import set_store
from pintdiary.infra.store.redis_store import RedisEntityStore
from pintdiary.main import app
from pintdiary.settings import settings

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class StepClock:
	"""Deterministic clock advancing one minute per reading."""

	def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(minutes=1)) -> None:
		self.current = start
		self.step = step

	def __call__(self) -> datetime:
		value = self.current
		self.current = self.current + self.step
		return value


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from pintdiary.infra.redis import redis_client, set_redis_client

	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture
def clock():
	return StepClock()


@pytest.fixture(autouse=True)
def store(fake_redis, clock):
	entity_store = RedisEntityStore(clock=clock)
	set_store(entity_store)
	try:
		yield entity_store
	finally:
		set_store(None)


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Dev environment, UTC weekday buckets and no socket namespace."""
	original_env = settings.environment
	original_tz = settings.stats_timezone
	settings.environment = "dev"
	settings.stats_timezone = "UTC"
	badge_sockets.set_namespace(None)
	try:
		yield
	finally:
		settings.environment = original_env
		settings.stats_timezone = original_tz


@pytest.fixture
def make_user(store):
	async def _make(user_id: str, *, display_name: str | None = None, friend_ids=(), **fields):
		record = new_user_record(display_name or user_id.title(), f"{user_id}@example.com")
		record["friend_ids"] = list(friend_ids)
		record.update(fields)
		return await store.put("users", user_id, record)

	return _make


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client

