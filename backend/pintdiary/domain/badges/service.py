"""Badge award persistence and the badge board."""

from __future__ import annotations

import logging
from typing import Optional

from pintdiary.domain.badges import engine, sockets
from pintdiary.domain.badges.models import (
	ALL_BADGE_IDS,
	BADGE_CONFIG,
	BadgeBoardEntry,
	BadgeEvent,
	BadgeId,
	EarnedBadge,
)
from pintdiary.domain.exceptions import NotFound
from pintdiary.domain.users.models import COLLECTION as USERS
from pintdiary.domain.users.models import User
from pintdiary.infra.store import EntityStore, get_store
from pintdiary.infra.store.base import Clock, utc_now
from pintdiary.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


async def award_badges(
	user_id: str,
	event: BadgeEvent,
	*,
	store: Optional[EntityStore] = None,
	clock: Clock = utc_now,
) -> list[BadgeId]:
	"""Evaluate the rule table for ``user_id`` and append any newly earned badges.

	All new badges go in one keyed append, so a badge already present (including
	one appended by a concurrent evaluation) keeps its original ``earned_at``.
	"""
	store = store or get_store()
	record = await store.get(USERS, user_id)
	if record is None:
		raise NotFound("user_not_found")
	user = User.from_record(record)
	candidates = engine.evaluate(engine.snapshot_from_user(user), event)
	if not candidates:
		return []

	earned_at = clock()
	entries = [EarnedBadge(badge_id.value, earned_at).to_record() for badge_id in candidates]
	merged = await store.union_append(USERS, user_id, "badges", entries, key="badge_id")
	stamp = earned_at.isoformat()
	stored = {item.get("badge_id"): item.get("earned_at") for item in merged}
	awarded = [badge_id for badge_id in candidates if stored.get(badge_id.value) == stamp]

	for badge_id in awarded:
		obs_metrics.inc_badge_awarded(badge_id.value)
		display = BADGE_CONFIG[badge_id]
		await sockets.emit_badge_awarded(
			user_id,
			{"badge_id": badge_id.value, "name": display.name, "icon": display.icon, "earned_at": stamp},
		)
	if awarded:
		logger.info("Badges awarded", extra={"user_id": user_id, "badges": [b.value for b in awarded]})
	return awarded


def badge_board(user: User) -> list[BadgeBoardEntry]:
	earned = {badge.badge_id: badge.earned_at for badge in user.badges}
	return [
		BadgeBoardEntry(
			badge_id=badge_id,
			display=BADGE_CONFIG[badge_id],
			earned=badge_id.value in earned,
			earned_at=earned.get(badge_id.value),
		)
		for badge_id in ALL_BADGE_IDS
	]
