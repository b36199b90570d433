"""Friend connections, friend lists and the passport page.

Friendship is stored on both users' ``friend_ids`` by two independent appends.
The initiator's append is the primary write; the counterpart's append and both
badge evaluations are best-effort, so a partial failure leaves the friendship
one-sided until the counterpart connects back.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from pintdiary.domain.badges.models import BadgeBoardEntry, BadgeEvent, BadgeId
from pintdiary.domain.badges.service import award_badges, badge_board
from pintdiary.domain.exceptions import InvalidArgument, NotFound
from pintdiary.domain.pints.models import Pint
from pintdiary.domain.secondary import run_secondary
from pintdiary.domain.stats.service import load_all_pints
from pintdiary.domain.users.models import COLLECTION as USERS
from pintdiary.domain.users.models import User
from pintdiary.domain.users.service import get_user
from pintdiary.infra.store import EntityStore, get_store
from pintdiary.obs import metrics as obs_metrics
from pintdiary.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class FriendConnected:
	friend_ids: list[str] = field(default_factory=list)
	new_badges: list[BadgeId] = field(default_factory=list)


@dataclass
class Passport:
	profile: User
	badges: list[BadgeBoardEntry]
	visible: bool
	pints: list[Pint] = field(default_factory=list)


async def add_friend(user_id: str, friend_id: str, *, store: Optional[EntityStore] = None) -> FriendConnected:
	friend_id = (friend_id or "").strip()
	if not friend_id:
		raise InvalidArgument("friend_id_required")
	if friend_id == user_id:
		raise InvalidArgument("self_friend")
	store = store or get_store()
	initiator = await store.get(USERS, user_id)
	if initiator is None:
		raise NotFound("user_not_found")
	if await store.get(USERS, friend_id) is None:
		raise NotFound("friend_not_found")
	already = friend_id in (initiator.get("friend_ids") or [])

	friend_ids = await store.union_append(USERS, user_id, "friend_ids", [friend_id])
	obs_metrics.inc_friend_connect("already_friends" if already else "connected")
	logger.info("Friend connected", extra={"user_id": user_id, "friend_id": friend_id})

	await run_secondary(
		"friend_counterpart_write",
		store.union_append(USERS, friend_id, "friend_ids", [user_id]),
	)
	new_badges = await run_secondary(
		"friend_badges",
		award_badges(user_id, BadgeEvent.friend_connected(), store=store),
	)
	await run_secondary(
		"friend_counterpart_badges",
		award_badges(friend_id, BadgeEvent.friend_connected(), store=store),
	)
	return FriendConnected(friend_ids=[str(item) for item in friend_ids], new_badges=new_badges or [])


async def list_friends(user_id: str, *, store: Optional[EntityStore] = None) -> list[User]:
	store = store or get_store()
	user = await get_user(user_id, store=store)
	records = await asyncio.gather(*(store.get(USERS, friend_id) for friend_id in user.friend_ids))
	return [User.from_record(record) for record in records if record is not None]


def friend_link(user_id: str) -> str:
	"""URL encoded into the add-friend QR code."""
	return f"{settings.public_base_url.rstrip('/')}/add-friend/{user_id}"


async def get_passport(viewer_id: str, owner_id: str, *, store: Optional[EntityStore] = None) -> Passport:
	"""Owner's profile and badge board; their pints (oldest first) only for the owner and friends."""
	store = store or get_store()
	owner = await get_user(owner_id, store=store)
	visible = viewer_id == owner_id or owner.is_friend(viewer_id)
	pints: list[Pint] = []
	if visible:
		pints = list(reversed(await load_all_pints(owner_id, store=store)))
	return Passport(profile=owner, badges=badge_board(owner), visible=visible, pints=pints)
