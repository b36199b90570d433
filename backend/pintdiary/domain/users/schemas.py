"""Pydantic schemas for user profiles and the passport page."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from pintdiary.domain.badges.schemas import BadgeBoardEntrySchema, EarnedBadgeSchema
from pintdiary.domain.pints.schemas import PintSchema
from pintdiary.domain.users.models import User


class PublicProfileSchema(BaseModel):
	id: str
	display_name: str
	home_pub: Optional[str] = None
	photo_url: Optional[str] = None
	total_pints: int = 0
	avg_rating: float = 0.0

	@classmethod
	def from_user(cls, user: User) -> "PublicProfileSchema":
		return cls(
			id=user.id,
			display_name=user.display_name,
			home_pub=user.home_pub,
			photo_url=user.photo_url,
			total_pints=user.total_pints,
			avg_rating=user.avg_rating,
		)


class UserSchema(PublicProfileSchema):
	email: str = ""
	social_pints: int = 0
	friend_ids: list[str] = Field(default_factory=list)
	badges: list[EarnedBadgeSchema] = Field(default_factory=list)
	created_at: Optional[datetime] = None

	@classmethod
	def from_user(cls, user: User) -> "UserSchema":
		return cls(
			id=user.id,
			display_name=user.display_name,
			home_pub=user.home_pub,
			photo_url=user.photo_url,
			total_pints=user.total_pints,
			avg_rating=user.avg_rating,
			email=user.email,
			social_pints=user.social_pints,
			friend_ids=list(user.friend_ids),
			badges=[EarnedBadgeSchema(badge_id=b.badge_id, earned_at=b.earned_at) for b in user.badges],
			created_at=user.created_at,
		)


class ProfileUpdateRequest(BaseModel):
	display_name: Optional[str] = None
	home_pub: Optional[str] = None
	photo_url: Optional[str] = None


class PassportSchema(BaseModel):
	profile: PublicProfileSchema
	badges: list[BadgeBoardEntrySchema]
	visible: bool
	pints: list[PintSchema] = Field(default_factory=list)
