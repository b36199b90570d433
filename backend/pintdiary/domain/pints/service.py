"""Pint logging, listing, editing and deletion.

Each mutation has one primary store write whose failure propagates. Counter and
badge maintenance that follows it is secondary and never fails the request.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from pintdiary.domain.badges.models import BadgeEvent, BadgeId
from pintdiary.domain.badges.service import award_badges
from pintdiary.domain.exceptions import InvalidArgument, NotFound, Unauthorized
from pintdiary.domain.pints.models import (
	ALL_TAGS,
	COLLECTION,
	EDITABLE_FIELDS,
	MAX_RATING,
	MIN_RATING,
	NOTE_MAX_LENGTH,
	Pint,
	PintDraft,
)
from pintdiary.domain.secondary import run_secondary
from pintdiary.domain.stats import service as stats_service
from pintdiary.domain.users.models import COLLECTION as USERS
from pintdiary.domain.users.models import User
from pintdiary.infra import storage
from pintdiary.infra.store import EntityStore, get_store
from pintdiary.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass
class PintLogged:
	pint: Pint
	new_badges: list[BadgeId] = field(default_factory=list)


@dataclass
class PintPage:
	pints: list[Pint] = field(default_factory=list)
	cursor: Optional[str] = None
	has_more: bool = False


@dataclass
class MapView:
	mappable: list[Pint] = field(default_factory=list)
	unmapped: list[Pint] = field(default_factory=list)


# --- Validation -------------------------------------------------------------


def _pub_name(value: Any) -> str:
	name = str(value or "").strip()
	if not name:
		raise InvalidArgument("pub_name_required")
	return name


def _rating(value: Any) -> int:
	if isinstance(value, bool) or not isinstance(value, int):
		raise InvalidArgument("rating_invalid")
	if not MIN_RATING <= value <= MAX_RATING:
		raise InvalidArgument("rating_invalid")
	return value


def _tags(values: Optional[Iterable[str]]) -> list[str]:
	tags = list(dict.fromkeys(values or []))
	for tag in tags:
		if tag not in ALL_TAGS:
			raise InvalidArgument("tag_invalid")
	return tags


def _note(value: Any) -> str:
	note = str(value or "")
	if len(note) > NOTE_MAX_LENGTH:
		raise InvalidArgument("note_too_long")
	return note


def _coordinate(value: Any, bound: float) -> float:
	try:
		number = float(value or 0.0)
	except (TypeError, ValueError):
		raise InvalidArgument("location_invalid") from None
	if not -bound <= number <= bound:
		raise InvalidArgument("location_invalid")
	return number


_FIELD_VALIDATORS = {
	"pub_name": _pub_name,
	"address": lambda value: str(value or ""),
	"place_id": lambda value: str(value or ""),
	"lat": lambda value: _coordinate(value, 90.0),
	"lng": lambda value: _coordinate(value, 180.0),
	"rating": _rating,
	"tags": _tags,
	"note": _note,
	"photo_url": lambda value: str(value or ""),
}


# --- Reads ------------------------------------------------------------------


async def _owned_pint(store: EntityStore, user_id: str, pint_id: str) -> Pint:
	record = await store.get(COLLECTION, pint_id)
	if record is None:
		raise NotFound("pint_not_found")
	pint = Pint.from_record(record)
	if pint.user_id != user_id:
		raise Unauthorized("not_owner")
	return pint


async def get_pint(user_id: str, pint_id: str, *, store: Optional[EntityStore] = None) -> Pint:
	return await _owned_pint(store or get_store(), user_id, pint_id)


async def list_pints(
	user_id: str,
	page_size: int = DEFAULT_PAGE_SIZE,
	cursor: Optional[str] = None,
	*,
	store: Optional[EntityStore] = None,
) -> PintPage:
	if not 1 <= page_size <= MAX_PAGE_SIZE:
		raise InvalidArgument("page_size_invalid")
	store = store or get_store()
	page = await store.query_by_owner(COLLECTION, user_id, limit=page_size, cursor=cursor)
	pints = [Pint.from_record(record) for record in page.items]
	return PintPage(pints=pints, cursor=page.next_cursor, has_more=len(pints) == page_size)


async def list_all_pints(user_id: str, *, store: Optional[EntityStore] = None) -> list[Pint]:
	return await stats_service.load_all_pints(user_id, store=store)


async def map_points(user_id: str, *, store: Optional[EntityStore] = None) -> MapView:
	view = MapView()
	for pint in await list_all_pints(user_id, store=store):
		(view.mappable if pint.has_location else view.unmapped).append(pint)
	return view


# --- Mutations --------------------------------------------------------------


async def log_pint(
	user_id: str,
	draft: PintDraft,
	photo_url: Optional[str] = None,
	*,
	store: Optional[EntityStore] = None,
) -> PintLogged:
	pub_name = _pub_name(draft.pub_name)
	rating = _rating(draft.rating)
	tags = _tags(draft.tags)
	note = _note(draft.note)
	lat = _coordinate(draft.lat, 90.0)
	lng = _coordinate(draft.lng, 180.0)

	store = store or get_store()
	owner_record = await store.get(USERS, user_id)
	if owner_record is None:
		raise NotFound("user_not_found")
	owner = User.from_record(owner_record)
	with_friends = list(dict.fromkeys(str(friend_id) for friend_id in draft.with_friends))
	for friend_id in with_friends:
		if not owner.is_friend(friend_id):
			raise InvalidArgument("not_a_friend")

	created = await store.create(
		COLLECTION,
		{
			"user_id": user_id,
			"pub_name": pub_name,
			"address": str(draft.address or ""),
			"place_id": str(draft.place_id or ""),
			"lat": lat,
			"lng": lng,
			"rating": rating,
			"tags": tags,
			"note": note,
			"photo_url": photo_url or "",
			"with_friends": with_friends,
		},
	)
	pint = Pint.from_record(created)
	obs_metrics.inc_pint_written("logged")
	logger.info("Pint logged", extra={"user_id": user_id, "pint_id": pint.id})

	await run_secondary(
		"pint_added_counters",
		stats_service.record_pint_added(user_id, rating, bool(with_friends), store=store),
	)
	new_badges = await run_secondary(
		"pint_added_badges",
		award_badges(user_id, BadgeEvent.pint_added(len(with_friends)), store=store),
	)
	return PintLogged(pint=pint, new_badges=new_badges or [])


async def edit_pint(
	user_id: str,
	pint_id: str,
	changes: Mapping[str, Any],
	*,
	store: Optional[EntityStore] = None,
) -> Pint:
	fields: dict[str, Any] = {}
	for name, value in changes.items():
		if name not in EDITABLE_FIELDS:
			raise InvalidArgument(f"field_not_editable:{name}")
		fields[name] = _FIELD_VALIDATORS[name](value)

	store = store or get_store()
	pint = await _owned_pint(store, user_id, pint_id)
	if fields:
		await store.update(COLLECTION, pint_id, fields)
		obs_metrics.inc_pint_written("edited")
	updated = dataclasses.replace(pint, **fields)

	if "rating" in fields:
		await run_secondary(
			"pint_rating_edited",
			stats_service.record_pint_rating_edited(user_id, pint_id, pint.rating, updated.rating, store=store),
		)
	return updated


async def delete_pint(user_id: str, pint_id: str, *, store: Optional[EntityStore] = None) -> None:
	store = store or get_store()
	await _owned_pint(store, user_id, pint_id)
	await store.delete(COLLECTION, pint_id)
	obs_metrics.inc_pint_written("deleted")
	logger.info("Pint deleted", extra={"user_id": user_id, "pint_id": pint_id})
	await run_secondary("pint_deleted_counters", stats_service.record_pint_deleted(user_id, store=store))


async def upload_photo(
	user_id: str,
	content: bytes,
	content_type: str,
	*,
	object_store: Optional[storage.ObjectStore] = None,
) -> str:
	try:
		storage.validate_photo(content, content_type)
	except InvalidArgument:
		obs_metrics.inc_photo_upload("rejected")
		raise
	key = storage.build_photo_key(user_id, content_type)
	url = await (object_store or storage.get_object_store()).upload(key, content, content_type)
	obs_metrics.inc_photo_upload("stored")
	return url
