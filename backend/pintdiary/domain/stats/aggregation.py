"""Pure aggregate arithmetic for a user's pint history.

Nothing here touches the store: the service layer reads counters, calls into
these functions and writes the results back.
"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from pintdiary.domain.pints.models import Pint
from pintdiary.domain.stats.models import (
	BEST_PUB_MIN_VISITS,
	MILESTONES,
	WEEKDAY_LABELS,
	Milestone,
	Stats,
)

_ONE_DECIMAL = Decimal("0.1")


def round1(value: float | int | Decimal) -> float:
	"""Round half-up to one decimal place (4.25 -> 4.3, not banker's 4.2)."""
	if not isinstance(value, Decimal):
		value = Decimal(str(value))
	return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def _mean(total: int, count: int) -> Decimal:
	return Decimal(total) / Decimal(count)


def on_pint_added(total_pints: int, avg_rating: float, rating: int) -> tuple[int, float]:
	"""New ``(total_pints, avg_rating)`` after one more pint rated ``rating``."""
	new_total = total_pints + 1
	weighted = Decimal(str(avg_rating)) * total_pints + rating
	return new_total, round1(weighted / new_total)


def on_pint_rating_edited(
	pint_id: str,
	old_rating: int,
	new_rating: int,
	all_pints: Sequence[Pint],
) -> Optional[float]:
	"""Exact mean over ``all_pints`` with ``pint_id`` re-rated, or ``None`` when unchanged."""
	if old_rating == new_rating:
		return None
	if not all_pints:
		return 0.0
	ratings = [new_rating if pint.id == pint_id else pint.rating for pint in all_pints]
	return round1(_mean(sum(ratings), len(ratings)))


def weekday_label(created_at: datetime, tz: tzinfo) -> str:
	if created_at.tzinfo is None:
		created_at = created_at.replace(tzinfo=timezone.utc)
	local = created_at.astimezone(tz)
	# datetime.weekday() is Mon=0; buckets are Sun=0
	return WEEKDAY_LABELS[(local.weekday() + 1) % 7]


def next_milestone(total_pints: int) -> Optional[Milestone]:
	for target, label in MILESTONES:
		if total_pints < target:
			return Milestone(target=target, label=label, remaining=target - total_pints)
	return None


def compute_stats(pints: Iterable[Pint], tz: tzinfo = timezone.utc) -> Stats:
	stats = Stats()
	rating_sum = 0
	# pub name -> [sum, count], insertion ordered
	groups: dict[str, list[int]] = {}
	for pint in pints:
		stats.total_pints += 1
		rating_sum += pint.rating
		if pint.rating in stats.rating_distribution:
			stats.rating_distribution[pint.rating] += 1
		if pint.created_at is not None:
			stats.day_of_week_distribution[weekday_label(pint.created_at, tz)] += 1
		group = groups.setdefault(pint.pub_name, [0, 0])
		group[0] += pint.rating
		group[1] += 1

	stats.unique_pubs = len(groups)
	if stats.total_pints:
		stats.avg_rating = round1(_mean(rating_sum, stats.total_pints))

	best_mean: Optional[Decimal] = None
	for pub_name, (pub_sum, pub_count) in groups.items():
		if pub_count < BEST_PUB_MIN_VISITS:
			continue
		pub_mean = _mean(pub_sum, pub_count)
		if best_mean is None or pub_mean > best_mean:
			best_mean = pub_mean
			stats.best_pub = pub_name
	if best_mean is not None:
		stats.best_pub_rating = round1(best_mean)

	stats.next_milestone = next_milestone(stats.total_pints)
	return stats
