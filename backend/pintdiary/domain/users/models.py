"""User document model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from pintdiary.domain.badges.models import EarnedBadge

COLLECTION = "users"
DEFAULT_DISPLAY_NAME = "Guinness Drinker"


def new_user_record(display_name: Optional[str], email: Optional[str], photo_url: Optional[str] = None) -> dict[str, Any]:
	"""Fields of a freshly signed-up user, counters zeroed."""
	return {
		"display_name": (display_name or "").strip() or DEFAULT_DISPLAY_NAME,
		"email": email or "",
		"total_pints": 0,
		"avg_rating": 0.0,
		"social_pints": 0,
		"friend_ids": [],
		"badges": [],
		"home_pub": None,
		"photo_url": photo_url,
	}


@dataclass
class User:
	id: str
	display_name: str
	email: str = ""
	total_pints: int = 0
	avg_rating: float = 0.0
	social_pints: int = 0
	friend_ids: list[str] = field(default_factory=list)
	badges: list[EarnedBadge] = field(default_factory=list)
	home_pub: Optional[str] = None
	photo_url: Optional[str] = None
	created_at: Optional[datetime] = None

	@property
	def badge_ids(self) -> frozenset[str]:
		return frozenset(badge.badge_id for badge in self.badges)

	def is_friend(self, other_id: str) -> bool:
		return other_id in self.friend_ids

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "User":
		return cls(
			id=str(record["id"]),
			display_name=str(record.get("display_name") or DEFAULT_DISPLAY_NAME),
			email=str(record.get("email") or ""),
			total_pints=int(record.get("total_pints") or 0),
			avg_rating=float(record.get("avg_rating") or 0.0),
			social_pints=int(record.get("social_pints") or 0),
			friend_ids=[str(friend) for friend in record.get("friend_ids") or []],
			badges=[EarnedBadge.from_record(item) for item in record.get("badges") or []],
			home_pub=record.get("home_pub"),
			photo_url=record.get("photo_url"),
			created_at=record.get("created_at"),
		)
