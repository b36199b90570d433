"""REST API for the caller's user document, public profiles and passports."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pintdiary.api.errors import map_domain_error
from pintdiary.domain.badges.schemas import BadgeBoardEntrySchema
from pintdiary.domain.exceptions import DiaryError
from pintdiary.domain.pints.schemas import PintSchema
from pintdiary.domain.social import service as social_service
from pintdiary.domain.users import service
from pintdiary.domain.users.schemas import (
	PassportSchema,
	ProfileUpdateRequest,
	PublicProfileSchema,
	UserSchema,
)
from pintdiary.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/me", response_model=UserSchema)
async def sign_in(auth_user: AuthenticatedUser = Depends(get_current_user)) -> UserSchema:
	try:
		user = await service.ensure_user(auth_user)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return UserSchema.from_user(user)


@router.get("/me", response_model=UserSchema)
async def get_me(auth_user: AuthenticatedUser = Depends(get_current_user)) -> UserSchema:
	try:
		user = await service.get_user(auth_user.id)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return UserSchema.from_user(user)


@router.patch("/me", response_model=UserSchema)
async def update_me(
	payload: ProfileUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> UserSchema:
	try:
		user = await service.update_profile(
			auth_user.id,
			display_name=payload.display_name,
			home_pub=payload.home_pub,
			photo_url=payload.photo_url,
		)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return UserSchema.from_user(user)


@router.get("/{user_id}", response_model=PublicProfileSchema)
async def get_profile(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> PublicProfileSchema:
	try:
		user = await service.get_user(user_id)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return PublicProfileSchema.from_user(user)


@router.get("/{user_id}/passport", response_model=PassportSchema)
async def get_passport(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> PassportSchema:
	try:
		passport = await social_service.get_passport(auth_user.id, user_id)
	except DiaryError as exc:
		raise map_domain_error(exc) from None
	return PassportSchema(
		profile=PublicProfileSchema.from_user(passport.profile),
		badges=[BadgeBoardEntrySchema.from_entry(entry) for entry in passport.badges],
		visible=passport.visible,
		pints=[PintSchema.from_pint(pint) for pint in passport.pints],
	)
