"""REST API for friend connections."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pintdiary.api.errors import map_domain_error
from pintdiary.domain.exceptions import DiaryError
from pintdiary.domain.social import service
from pintdiary.domain.social.schemas import FriendConnectedSchema, FriendLinkSchema
from pintdiary.domain.users.schemas import PublicProfileSchema
from pintdiary.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=list[PublicProfileSchema])
async def list_friends(auth_user: AuthenticatedUser = Depends(get_current_user)) -> list[PublicProfileSchema]:
	try:
		friends = await service.list_friends(auth_user.id)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return [PublicProfileSchema.from_user(friend) for friend in friends]


@router.get("/link", response_model=FriendLinkSchema)
async def friend_link(auth_user: AuthenticatedUser = Depends(get_current_user)) -> FriendLinkSchema:
	return FriendLinkSchema(url=service.friend_link(auth_user.id))


@router.post("/{friend_id}", response_model=FriendConnectedSchema)
async def add_friend(
	friend_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> FriendConnectedSchema:
	try:
		connected = await service.add_friend(auth_user.id, friend_id)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return FriendConnectedSchema(
		friend_ids=connected.friend_ids,
		new_badges=[badge.value for badge in connected.new_badges],
	)
