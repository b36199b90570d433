"""REST API for the caller's pint statistics."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pintdiary.api.errors import map_domain_error
from pintdiary.domain.exceptions import DiaryError
from pintdiary.domain.stats import service
from pintdiary.domain.stats.schemas import StatsSchema
from pintdiary.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["stats"])


@router.get("/stats", response_model=StatsSchema)
async def get_stats(auth_user: AuthenticatedUser = Depends(get_current_user)) -> StatsSchema:
	try:
		stats = await service.get_stats(auth_user.id)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return StatsSchema.from_stats(stats)
