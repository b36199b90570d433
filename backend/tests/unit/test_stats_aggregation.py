from datetime import datetime, timedelta, timezone
from functools import reduce
from zoneinfo import ZoneInfo

import pytest

from pintdiary.domain.pints.models import Pint
from pintdiary.domain.stats import aggregation
from pintdiary.domain.stats.models import WEEKDAY_LABELS

BASE = datetime(2024, 3, 4, 18, 0, tzinfo=timezone.utc)  # a Monday


def _pint(pint_id: str, pub: str, rating: int, created_at: datetime = BASE) -> Pint:
	return Pint(id=pint_id, user_id="alice", pub_name=pub, rating=rating, created_at=created_at)


def _fold(ratings):
	return reduce(lambda acc, rating: aggregation.on_pint_added(acc[0], acc[1], rating), ratings, (0, 0.0))


def test_round1_rounds_half_up():
	assert aggregation.round1(4.25) == 4.3
	assert aggregation.round1(4.35) == 4.4
	assert aggregation.round1(2.05) == 2.1
	assert aggregation.round1(4.24) == 4.2
	assert aggregation.round1(0) == 0.0


def test_on_pint_added_uses_pre_increment_counters():
	assert aggregation.on_pint_added(0, 0.0, 4) == (1, 4.0)
	assert aggregation.on_pint_added(2, 4.5, 3) == (3, 4.0)


@pytest.mark.parametrize(
	"ratings",
	[[5, 3, 4], [4, 2], [1, 2, 3, 4, 5], [5, 5, 5, 5, 5, 5], [3]],
)
def test_sequential_additions_match_rounded_mean(ratings):
	total, avg = _fold(ratings)
	assert total == len(ratings)
	assert avg == aggregation.round1(sum(ratings) / len(ratings))


def test_incremental_average_can_drift_and_full_recompute_heals_it():
	ratings = [1, 1, 2, 1]
	total, avg = _fold(ratings)
	assert total == 4
	# 1.0 -> 1.0 -> 1.3 -> round1(4.9 / 4) = 1.2, while the exact mean 1.25 rounds to 1.3
	assert avg == 1.2
	pints = [_pint(str(idx), "The Stag", rating) for idx, rating in enumerate(ratings)]
	assert aggregation.compute_stats(pints).avg_rating == 1.3


def test_rating_edit_with_same_rating_is_a_noop():
	pints = [_pint("a", "The Stag", 3)]
	assert aggregation.on_pint_rating_edited("a", 3, 3, pints) is None


def test_rating_edit_recomputes_exact_mean_with_replacement():
	pints = [_pint("a", "The Stag", 5), _pint("b", "The Stag", 3), _pint("c", "Kehoe's", 4)]
	assert aggregation.on_pint_rating_edited("b", 3, 5, pints) == 4.7
	assert aggregation.on_pint_rating_edited("b", 3, 1, pints) == 3.3


def test_rating_edit_on_empty_history_is_zero():
	assert aggregation.on_pint_rating_edited("gone", 2, 4, []) == 0.0


def test_compute_stats_on_empty_history():
	stats = aggregation.compute_stats([])
	assert stats.total_pints == 0
	assert stats.unique_pubs == 0
	assert stats.avg_rating == 0
	assert stats.best_pub is None
	assert stats.best_pub_rating == 0
	assert stats.rating_distribution == {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
	assert stats.day_of_week_distribution == {label: 0 for label in WEEKDAY_LABELS}


def test_compute_stats_best_pub_scenario():
	pints = [
		_pint("1", "The Stag", 5),
		_pint("2", "The Stag", 3),
		_pint("3", "O'Donoghue's", 4),
	]
	stats = aggregation.compute_stats(pints)
	assert stats.total_pints == 3
	assert stats.unique_pubs == 2
	assert stats.avg_rating == 4.0
	assert stats.best_pub == "The Stag"
	assert stats.best_pub_rating == 4.0
	assert stats.rating_distribution == {1: 0, 2: 0, 3: 1, 4: 1, 5: 1}
	assert stats.day_of_week_distribution["Mon"] == 3


def test_best_pub_requires_two_visits():
	pints = [_pint("1", "The Stag", 5), _pint("2", "Kehoe's", 1)]
	stats = aggregation.compute_stats(pints)
	assert stats.best_pub is None
	assert stats.best_pub_rating == 0


def test_best_pub_tie_keeps_first_group_encountered():
	pints = [
		_pint("1", "Kehoe's", 4),
		_pint("2", "The Stag", 5),
		_pint("3", "Kehoe's", 4),
		_pint("4", "The Stag", 3),
	]
	stats = aggregation.compute_stats(pints)
	assert stats.best_pub == "Kehoe's"
	assert stats.best_pub_rating == 4.0


def test_pub_grouping_is_case_sensitive():
	pints = [_pint("1", "The Stag", 4), _pint("2", "the stag", 4)]
	stats = aggregation.compute_stats(pints)
	assert stats.unique_pubs == 2
	assert stats.best_pub is None


def test_best_pub_rating_rounds_half_up():
	pints = [_pint("1", "Grogan's", 4), _pint("2", "Grogan's", 5), _pint("3", "Grogan's", 4), _pint("4", "Grogan's", 4)]
	assert aggregation.compute_stats(pints).best_pub_rating == 4.3


def test_weekday_buckets_start_on_sunday():
	sunday = datetime(2024, 3, 3, 12, 0, tzinfo=timezone.utc)
	saturday = sunday - timedelta(days=1)
	assert aggregation.weekday_label(sunday, timezone.utc) == "Sun"
	assert aggregation.weekday_label(saturday, timezone.utc) == "Sat"
	assert aggregation.weekday_label(sunday + timedelta(days=1), timezone.utc) == "Mon"


def test_weekday_uses_local_calendar_day():
	late_saturday_utc = datetime(2024, 3, 2, 23, 30, tzinfo=timezone.utc)
	assert aggregation.weekday_label(late_saturday_utc, timezone.utc) == "Sat"
	assert aggregation.weekday_label(late_saturday_utc, ZoneInfo("Asia/Tokyo")) == "Sun"

	stats = aggregation.compute_stats([_pint("1", "The Stag", 4, late_saturday_utc)], ZoneInfo("Asia/Tokyo"))
	assert stats.day_of_week_distribution["Sun"] == 1
	assert stats.day_of_week_distribution["Sat"] == 0


@pytest.mark.parametrize(
	"total, target, remaining",
	[(0, 10, 10), (9, 10, 1), (10, 50, 40), (99, 100, 1)],
)
def test_next_milestone(total, target, remaining):
	milestone = aggregation.next_milestone(total)
	assert milestone is not None
	assert (milestone.target, milestone.remaining) == (target, remaining)


def test_no_milestone_past_the_century():
	assert aggregation.next_milestone(100) is None
	assert aggregation.next_milestone(250) is None
