"""Domain models for logged pints."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

COLLECTION = "pints"

MIN_RATING = 1
MAX_RATING = 5
NOTE_MAX_LENGTH = 500
# Coordinates within this distance of (0, 0) mean "no location"
LOCATION_EPSILON = 0.001

EDITABLE_FIELDS = (
	"pub_name",
	"address",
	"place_id",
	"lat",
	"lng",
	"rating",
	"tags",
	"note",
	"photo_url",
)


class PintTag(str, Enum):
	PERFECT_HEAD = "Perfect Head"
	CREAMY = "Creamy"
	BITTER = "Bitter"
	SMOOTH = "Smooth"
	COLD = "Cold"
	LUKEWARM = "Lukewarm"
	WELL_POURED = "Well-poured"
	FLAT = "Flat"
	HAZY = "Hazy"
	LIVELY = "Lively"


ALL_TAGS: tuple[str, ...] = tuple(tag.value for tag in PintTag)


@dataclass
class Pint:
	id: str
	user_id: str
	pub_name: str
	rating: int
	address: str = ""
	place_id: str = ""
	lat: float = 0.0
	lng: float = 0.0
	tags: list[str] = field(default_factory=list)
	note: str = ""
	photo_url: str = ""
	with_friends: list[str] = field(default_factory=list)
	created_at: Optional[datetime] = None

	@property
	def has_location(self) -> bool:
		return abs(self.lat) > LOCATION_EPSILON or abs(self.lng) > LOCATION_EPSILON

	@property
	def is_social(self) -> bool:
		return len(self.with_friends) > 0

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "Pint":
		return cls(
			id=str(record["id"]),
			user_id=str(record.get("user_id") or ""),
			pub_name=str(record.get("pub_name") or ""),
			rating=int(record.get("rating") or 0),
			address=str(record.get("address") or ""),
			place_id=str(record.get("place_id") or ""),
			lat=float(record.get("lat") or 0.0),
			lng=float(record.get("lng") or 0.0),
			tags=list(record.get("tags") or []),
			note=str(record.get("note") or ""),
			photo_url=str(record.get("photo_url") or ""),
			with_friends=list(record.get("with_friends") or []),
			created_at=record.get("created_at"),
		)


@dataclass
class PintDraft:
	"""Fields supplied by the owner when logging a pint."""

	pub_name: str
	rating: int
	address: str = ""
	place_id: str = ""
	lat: float = 0.0
	lng: float = 0.0
	tags: list[str] = field(default_factory=list)
	note: str = ""
	with_friends: list[str] = field(default_factory=list)
