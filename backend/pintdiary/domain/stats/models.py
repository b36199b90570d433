"""Derived statistics models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

# Sun=0 .. Sat=6
WEEKDAY_LABELS: tuple[str, ...] = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
RATING_VALUES: tuple[int, ...] = (1, 2, 3, 4, 5)
# Pub groups need at least this many visits to compete for best pub
BEST_PUB_MIN_VISITS = 2

MILESTONES: tuple[tuple[int, str], ...] = (
	(10, "seasoned drinker"),
	(50, "the half-century"),
	(100, "the century"),
)


@dataclass(frozen=True)
class Milestone:
	target: int
	label: str
	remaining: int


def _empty_ratings() -> dict[int, int]:
	return {rating: 0 for rating in RATING_VALUES}


def _empty_weekdays() -> dict[str, int]:
	return {label: 0 for label in WEEKDAY_LABELS}


@dataclass
class Stats:
	total_pints: int = 0
	unique_pubs: int = 0
	avg_rating: float = 0.0
	best_pub: Optional[str] = None
	best_pub_rating: float = 0.0
	rating_distribution: dict[int, int] = field(default_factory=_empty_ratings)
	day_of_week_distribution: dict[str, int] = field(default_factory=_empty_weekdays)
	next_milestone: Optional[Milestone] = None
