"""Pydantic schemas for the pints API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from pintdiary.domain.pints.models import Pint, PintDraft


class PintCreateRequest(BaseModel):
	pub_name: str
	rating: int
	address: str = ""
	place_id: str = ""
	lat: float = 0.0
	lng: float = 0.0
	tags: list[str] = Field(default_factory=list)
	note: str = ""
	photo_url: Optional[str] = None
	with_friends: list[str] = Field(default_factory=list)

	def to_draft(self) -> PintDraft:
		return PintDraft(
			pub_name=self.pub_name,
			rating=self.rating,
			address=self.address,
			place_id=self.place_id,
			lat=self.lat,
			lng=self.lng,
			tags=list(self.tags),
			note=self.note,
			with_friends=list(self.with_friends),
		)


class PintUpdateRequest(BaseModel):
	# owner, timestamp and tagged friends are fixed once logged
	model_config = ConfigDict(extra="forbid")

	pub_name: Optional[str] = None
	address: Optional[str] = None
	place_id: Optional[str] = None
	lat: Optional[float] = None
	lng: Optional[float] = None
	rating: Optional[int] = None
	tags: Optional[list[str]] = None
	note: Optional[str] = None
	photo_url: Optional[str] = None


class PintSchema(BaseModel):
	id: str
	user_id: str
	pub_name: str
	address: str
	place_id: str
	lat: float
	lng: float
	rating: int
	tags: list[str]
	note: str
	photo_url: str
	with_friends: list[str]
	created_at: Optional[datetime] = None

	@classmethod
	def from_pint(cls, pint: Pint) -> "PintSchema":
		return cls(
			id=pint.id,
			user_id=pint.user_id,
			pub_name=pint.pub_name,
			address=pint.address,
			place_id=pint.place_id,
			lat=pint.lat,
			lng=pint.lng,
			rating=pint.rating,
			tags=list(pint.tags),
			note=pint.note,
			photo_url=pint.photo_url,
			with_friends=list(pint.with_friends),
			created_at=pint.created_at,
		)


class PintPageSchema(BaseModel):
	items: list[PintSchema]
	cursor: Optional[str] = None
	has_more: bool = False


class PintLoggedSchema(BaseModel):
	pint: PintSchema
	new_badges: list[str] = Field(default_factory=list)


class MapViewSchema(BaseModel):
	mappable: list[PintSchema]
	unmapped: list[PintSchema]


class PhotoUploadResponse(BaseModel):
	url: str
