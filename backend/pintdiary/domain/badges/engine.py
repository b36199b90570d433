"""Pure badge rule evaluation over ``BADGE_RULES``."""

from __future__ import annotations

from typing import Iterable

from pintdiary.domain.badges.models import BADGE_RULES, BadgeEvent, BadgeId, BadgeRule, BadgeSnapshot
from pintdiary.domain.users.models import User


def snapshot_from_user(user: User) -> BadgeSnapshot:
	return BadgeSnapshot(
		friend_count=len(set(user.friend_ids)),
		social_pints=user.social_pints,
		held=user.badge_ids,
	)


def evaluate(
	snapshot: BadgeSnapshot,
	event: BadgeEvent,
	rules: Iterable[BadgeRule] = BADGE_RULES,
) -> list[BadgeId]:
	"""Badges not yet held whose trigger matches ``event`` and whose predicate holds, in rule order."""
	triggers = event.triggers
	awarded: list[BadgeId] = []
	for rule in rules:
		if rule.trigger not in triggers:
			continue
		if rule.badge_id.value in snapshot.held or rule.badge_id in awarded:
			continue
		if rule.predicate(snapshot, event):
			awarded.append(rule.badge_id)
	return awarded
