"""Friend feed: friends' pints newest first, in paginated or full mode."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from pintdiary.domain.exceptions import InvalidArgument
from pintdiary.domain.pints.models import COLLECTION as PINTS
from pintdiary.domain.pints.models import Pint
from pintdiary.infra.store import MAX_OWNERS_PER_QUERY, EntityStore, get_store
from pintdiary.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass
class FeedPage:
	pints: list[Pint] = field(default_factory=list)
	cursor: Optional[str] = None
	# True when the page came back full; may be a false positive at the exact end
	has_more: bool = False


def _unique(friend_ids: Sequence[str]) -> list[str]:
	return list(dict.fromkeys(str(friend_id) for friend_id in friend_ids if friend_id))


def _batches(ids: Sequence[str], size: int = MAX_OWNERS_PER_QUERY) -> list[list[str]]:
	return [list(ids[start : start + size]) for start in range(0, len(ids), size)]


async def get_friends_pints(
	friend_ids: Sequence[str],
	page_size: int = DEFAULT_PAGE_SIZE,
	cursor: Optional[str] = None,
	*,
	store: Optional[EntityStore] = None,
) -> FeedPage:
	"""One page of the feed from a single owner-set query.

	Only the first ``MAX_OWNERS_PER_QUERY`` friends are queried; pints of any
	friend beyond that are missing from paginated pages.
	"""
	if not 1 <= page_size <= MAX_PAGE_SIZE:
		raise InvalidArgument("page_size_invalid")
	owners = _unique(friend_ids)
	if not owners:
		return FeedPage()
	if len(owners) > MAX_OWNERS_PER_QUERY:
		logger.warning(
			"Feed owner set truncated",
			extra={"owners": len(owners), "kept": MAX_OWNERS_PER_QUERY},
		)
		obs_metrics.inc_feed_truncation()
		owners = owners[:MAX_OWNERS_PER_QUERY]
	store = store or get_store()
	obs_metrics.inc_feed_query("paginated")
	page = await store.query_by_owner_set(PINTS, owners, limit=page_size, cursor=cursor)
	pints = [Pint.from_record(record) for record in page.items]
	return FeedPage(pints=pints, cursor=page.next_cursor, has_more=len(pints) == page_size)


async def get_all_friends_pints(
	friend_ids: Sequence[str],
	*,
	store: Optional[EntityStore] = None,
) -> list[Pint]:
	"""Every pint of every friend, newest first, across as many owner batches as needed."""
	owners = _unique(friend_ids)
	if not owners:
		return []
	store = store or get_store()
	obs_metrics.inc_feed_query("full")
	pages = await asyncio.gather(
		*(store.query_by_owner_set(PINTS, batch) for batch in _batches(owners))
	)
	merged = [Pint.from_record(record) for page in pages for record in page.items]
	# batches are each ordered but their concatenation is not; sorted() is stable
	merged = sorted(merged, key=lambda pint: pint.created_at, reverse=True)
	return merged
