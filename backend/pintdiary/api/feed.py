"""REST API for the friend feed."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from pintdiary.api.errors import map_domain_error
from pintdiary.domain.exceptions import DiaryError
from pintdiary.domain.feed import service
from pintdiary.domain.feed.schemas import FeedPageSchema
from pintdiary.domain.pints.schemas import PintSchema
from pintdiary.domain.users.service import get_user
from pintdiary.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("", response_model=FeedPageSchema)
async def get_feed(
	page_size: int = Query(default=service.DEFAULT_PAGE_SIZE, ge=1, le=service.MAX_PAGE_SIZE),
	cursor: Optional[str] = Query(default=None),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> FeedPageSchema:
	try:
		user = await get_user(auth_user.id)
		page = await service.get_friends_pints(user.friend_ids, page_size, cursor)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return FeedPageSchema(
		items=[PintSchema.from_pint(pint) for pint in page.pints],
		cursor=page.cursor,
		has_more=page.has_more,
	)


@router.get("/all", response_model=list[PintSchema])
async def get_full_feed(auth_user: AuthenticatedUser = Depends(get_current_user)) -> list[PintSchema]:
	try:
		user = await get_user(auth_user.id)
		pints = await service.get_all_friends_pints(user.friend_ids)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return [PintSchema.from_pint(pint) for pint in pints]
