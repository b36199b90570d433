"""REST API for the caller's badge board."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pintdiary.api.errors import map_domain_error
from pintdiary.domain.badges.schemas import BadgeBoardEntrySchema
from pintdiary.domain.badges.service import badge_board
from pintdiary.domain.exceptions import DiaryError
from pintdiary.domain.users.service import get_user
from pintdiary.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["badges"])


@router.get("/badges", response_model=list[BadgeBoardEntrySchema])
async def get_badges(auth_user: AuthenticatedUser = Depends(get_current_user)) -> list[BadgeBoardEntrySchema]:
	try:
		user = await get_user(auth_user.id)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return [BadgeBoardEntrySchema.from_entry(entry) for entry in badge_board(user)]
