"""REST API for logging, browsing, editing and deleting pints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from pintdiary.api.errors import map_domain_error
from pintdiary.domain.exceptions import DiaryError
from pintdiary.domain.pints import service
from pintdiary.domain.pints.schemas import (
	MapViewSchema,
	PhotoUploadResponse,
	PintCreateRequest,
	PintLoggedSchema,
	PintPageSchema,
	PintSchema,
	PintUpdateRequest,
)
from pintdiary.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/pints", tags=["pints"])


@router.post("", response_model=PintLoggedSchema, status_code=status.HTTP_201_CREATED)
async def log_pint(
	payload: PintCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> PintLoggedSchema:
	try:
		logged = await service.log_pint(auth_user.id, payload.to_draft(), payload.photo_url)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return PintLoggedSchema(
		pint=PintSchema.from_pint(logged.pint),
		new_badges=[badge.value for badge in logged.new_badges],
	)


@router.get("", response_model=PintPageSchema)
async def list_pints(
	page_size: int = Query(default=service.DEFAULT_PAGE_SIZE, ge=1, le=service.MAX_PAGE_SIZE),
	cursor: Optional[str] = Query(default=None),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> PintPageSchema:
	try:
		page = await service.list_pints(auth_user.id, page_size, cursor)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return PintPageSchema(
		items=[PintSchema.from_pint(pint) for pint in page.pints],
		cursor=page.cursor,
		has_more=page.has_more,
	)


@router.get("/all", response_model=list[PintSchema])
async def list_all_pints(auth_user: AuthenticatedUser = Depends(get_current_user)) -> list[PintSchema]:
	try:
		pints = await service.list_all_pints(auth_user.id)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return [PintSchema.from_pint(pint) for pint in pints]


@router.get("/map", response_model=MapViewSchema)
async def map_points(auth_user: AuthenticatedUser = Depends(get_current_user)) -> MapViewSchema:
	try:
		view = await service.map_points(auth_user.id)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return MapViewSchema(
		mappable=[PintSchema.from_pint(pint) for pint in view.mappable],
		unmapped=[PintSchema.from_pint(pint) for pint in view.unmapped],
	)


@router.post("/photo", response_model=PhotoUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_photo(
	file: UploadFile = File(...),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> PhotoUploadResponse:
	content = await file.read()
	try:
		url = await service.upload_photo(auth_user.id, content, file.content_type or "")
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return PhotoUploadResponse(url=url)


@router.get("/{pint_id}", response_model=PintSchema)
async def get_pint(pint_id: str, auth_user: AuthenticatedUser = Depends(get_current_user)) -> PintSchema:
	try:
		pint = await service.get_pint(auth_user.id, pint_id)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return PintSchema.from_pint(pint)


@router.patch("/{pint_id}", response_model=PintSchema)
async def edit_pint(
	pint_id: str,
	payload: PintUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> PintSchema:
	try:
		pint = await service.edit_pint(auth_user.id, pint_id, payload.model_dump(exclude_unset=True))
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return PintSchema.from_pint(pint)


@router.delete("/{pint_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pint(pint_id: str, auth_user: AuthenticatedUser = Depends(get_current_user)) -> Response:
	try:
		await service.delete_pint(auth_user.id, pint_id)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return Response(status_code=status.HTTP_204_NO_CONTENT)
