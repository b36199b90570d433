"""Pydantic schemas for the stats API."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel

from pintdiary.domain.stats.models import Stats


class MilestoneSchema(BaseModel):
	target: int
	label: str
	remaining: int


class StatsSchema(BaseModel):
	total_pints: int
	unique_pubs: int
	avg_rating: float
	best_pub: Optional[str] = None
	best_pub_rating: float
	rating_distribution: Dict[int, int]
	day_of_week_distribution: Dict[str, int]
	next_milestone: Optional[MilestoneSchema] = None

	@classmethod
	def from_stats(cls, stats: Stats) -> "StatsSchema":
		milestone = stats.next_milestone
		return cls(
			total_pints=stats.total_pints,
			unique_pubs=stats.unique_pubs,
			avg_rating=stats.avg_rating,
			best_pub=stats.best_pub,
			best_pub_rating=stats.best_pub_rating,
			rating_distribution=dict(stats.rating_distribution),
			day_of_week_distribution=dict(stats.day_of_week_distribution),
			next_milestone=(
				MilestoneSchema(target=milestone.target, label=milestone.label, remaining=milestone.remaining)
				if milestone
				else None
			),
		)
