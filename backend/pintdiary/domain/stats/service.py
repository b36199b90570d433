"""Store-bound application of the aggregate counters and the stats read path.

Counter maintenance is best-effort: ``total_pints`` and ``social_pints`` use
atomic store increments, while ``avg_rating`` is read-modify-write. Two
concurrent additions for the same user can both read the same average and the
later write wins; ``get_stats`` always recomputes from the full history.
"""

from __future__ import annotations

import logging
from typing import Optional
from zoneinfo import ZoneInfo

from pintdiary.domain.exceptions import NotFound
from pintdiary.domain.pints.models import COLLECTION as PINTS
from pintdiary.domain.pints.models import Pint
from pintdiary.domain.stats import aggregation
from pintdiary.domain.stats.models import Stats
from pintdiary.domain.users.models import COLLECTION as USERS
from pintdiary.infra.store import EntityStore, get_store
from pintdiary.settings import settings

logger = logging.getLogger(__name__)


async def load_all_pints(user_id: str, *, store: Optional[EntityStore] = None) -> list[Pint]:
	"""Every pint owned by ``user_id``, newest first."""
	store = store or get_store()
	page = await store.query_by_owner(PINTS, user_id)
	return [Pint.from_record(record) for record in page.items]


async def record_pint_added(
	user_id: str,
	rating: int,
	has_friends: bool,
	*,
	store: Optional[EntityStore] = None,
) -> float:
	store = store or get_store()
	record = await store.get(USERS, user_id)
	if record is None:
		raise NotFound("user_not_found")
	total = int(record.get("total_pints") or 0)
	avg = float(record.get("avg_rating") or 0.0)
	_, new_avg = aggregation.on_pint_added(total, avg, rating)
	await store.update(USERS, user_id, {"avg_rating": new_avg})
	await store.increment_field(USERS, user_id, "total_pints", 1)
	if has_friends:
		await store.increment_field(USERS, user_id, "social_pints", 1)
	return new_avg


async def record_pint_rating_edited(
	user_id: str,
	pint_id: str,
	old_rating: int,
	new_rating: int,
	*,
	store: Optional[EntityStore] = None,
) -> Optional[float]:
	"""Recompute ``avg_rating`` over the full history; no store access when the rating is unchanged."""
	if old_rating == new_rating:
		return None
	store = store or get_store()
	pints = await load_all_pints(user_id, store=store)
	new_avg = aggregation.on_pint_rating_edited(pint_id, old_rating, new_rating, pints)
	await store.update(USERS, user_id, {"avg_rating": new_avg})
	return new_avg


async def record_pint_deleted(user_id: str, *, store: Optional[EntityStore] = None) -> int:
	"""Decrement ``total_pints``; ``avg_rating`` and ``social_pints`` are left as they are."""
	store = store or get_store()
	total = await store.increment_field(USERS, user_id, "total_pints", -1)
	if total < 0:
		logger.warning("total_pints went negative, clamping", extra={"user_id": user_id, "total": total})
		await store.update(USERS, user_id, {"total_pints": 0})
		total = 0
	return total


def stats_timezone() -> ZoneInfo:
	return ZoneInfo(settings.stats_timezone)


async def get_stats(user_id: str, *, store: Optional[EntityStore] = None) -> Stats:
	pints = await load_all_pints(user_id, store=store)
	return aggregation.compute_stats(pints, stats_timezone())
