"""User documents: sign-up provisioning and profile edits."""

from __future__ import annotations

import logging
from typing import Optional

from pintdiary.domain.exceptions import InvalidArgument, NotFound
from pintdiary.domain.users.models import COLLECTION, User, new_user_record
from pintdiary.infra.auth import AuthenticatedUser
from pintdiary.infra.store import EntityStore, get_store

logger = logging.getLogger(__name__)

DISPLAY_NAME_MAX_LENGTH = 80


async def ensure_user(auth_user: AuthenticatedUser, *, store: Optional[EntityStore] = None) -> User:
	"""Return the user's document, creating it with zeroed counters on first sign-in."""
	store = store or get_store()
	record = await store.get(COLLECTION, auth_user.id)
	if record is not None:
		return User.from_record(record)
	created = await store.put(
		COLLECTION,
		auth_user.id,
		new_user_record(auth_user.display_name, auth_user.email, auth_user.photo_url),
	)
	logger.info("User provisioned", extra={"user_id": auth_user.id})
	return User.from_record(created)


async def get_user(user_id: str, *, store: Optional[EntityStore] = None) -> User:
	record = await (store or get_store()).get(COLLECTION, user_id)
	if record is None:
		raise NotFound("user_not_found")
	return User.from_record(record)


async def update_profile(
	user_id: str,
	*,
	display_name: Optional[str] = None,
	home_pub: Optional[str] = None,
	photo_url: Optional[str] = None,
	store: Optional[EntityStore] = None,
) -> User:
	fields: dict[str, Optional[str]] = {}
	if display_name is not None:
		name = display_name.strip()
		if not name:
			raise InvalidArgument("display_name_required")
		if len(name) > DISPLAY_NAME_MAX_LENGTH:
			raise InvalidArgument("display_name_too_long")
		fields["display_name"] = name
	if home_pub is not None:
		fields["home_pub"] = home_pub.strip() or None
	if photo_url is not None:
		fields["photo_url"] = photo_url.strip() or None

	store = store or get_store()
	if fields:
		await store.update(COLLECTION, user_id, fields)
	return await get_user(user_id, store=store)
