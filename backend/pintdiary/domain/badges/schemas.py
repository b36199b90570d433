"""Pydantic schemas for badge payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from pintdiary.domain.badges.models import BadgeBoardEntry


class BadgeBoardEntrySchema(BaseModel):
	badge_id: str
	name: str
	description: str
	icon: str
	color: str
	earned: bool
	earned_at: Optional[datetime] = None

	@classmethod
	def from_entry(cls, entry: BadgeBoardEntry) -> "BadgeBoardEntrySchema":
		return cls(
			badge_id=entry.badge_id.value,
			name=entry.display.name,
			description=entry.display.description,
			icon=entry.display.icon,
			color=entry.display.color,
			earned=entry.earned,
			earned_at=entry.earned_at,
		)


class EarnedBadgeSchema(BaseModel):
	badge_id: str
	earned_at: datetime
