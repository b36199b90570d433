"""REST API proxying pub search to the places provider."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from pintdiary.infra.auth import AuthenticatedUser, get_current_user
from pintdiary.infra.places import PlaceResult, get_places_client

router = APIRouter(prefix="/places", tags=["places"])


class PlaceSchema(BaseModel):
	place_id: str
	name: str
	address: str
	lat: float
	lng: float

	@classmethod
	def from_result(cls, result: PlaceResult) -> "PlaceSchema":
		return cls(
			place_id=result.place_id,
			name=result.name,
			address=result.address,
			lat=result.lat,
			lng=result.lng,
		)


@router.get("/nearby", response_model=list[PlaceSchema])
async def search_nearby(
	lat: float = Query(..., ge=-90, le=90),
	lng: float = Query(..., ge=-180, le=180),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[PlaceSchema]:
	results = await get_places_client().search_nearby(lat, lng)
	return [PlaceSchema.from_result(result) for result in results]


@router.get("/search", response_model=list[PlaceSchema])
async def search_by_text(
	q: str = Query(default=""),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> list[PlaceSchema]:
	results = await get_places_client().search_by_text(q)
	return [PlaceSchema.from_result(result) for result in results]
