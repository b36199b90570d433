from pintdiary.domain.badges.engine import evaluate, snapshot_from_user
from pintdiary.domain.badges.models import (
	ALL_BADGE_IDS,
	BADGE_CONFIG,
	BADGE_RULES,
	BadgeEvent,
	BadgeId,
	BadgeSnapshot,
	BadgeTrigger,
)
from pintdiary.domain.users.models import User


def test_rule_table_order_and_triggers():
	assert [(rule.badge_id, rule.trigger) for rule in BADGE_RULES] == [
		(BadgeId.FIRST_FRIEND, BadgeTrigger.FRIEND_CONNECTED),
		(BadgeId.SOCIAL_BUTTERFLY, BadgeTrigger.FRIEND_CONNECTED),
		(BadgeId.SOCIAL_PINT, BadgeTrigger.SOCIAL_PINT_ADDED),
		(BadgeId.ROUND_BUYER, BadgeTrigger.PINT_ADDED),
		(BadgeId.PUB_CRAWLERS, BadgeTrigger.SOCIAL_PINT_ADDED),
		(BadgeId.THE_REGULAR, BadgeTrigger.SOCIAL_PINT_ADDED),
	]
	assert set(BADGE_CONFIG) == set(ALL_BADGE_IDS) == set(BadgeId)


def test_pint_event_triggers():
	assert BadgeEvent.pint_added(0).triggers == {BadgeTrigger.PINT_ADDED}
	assert BadgeEvent.pint_added(2).triggers == {BadgeTrigger.PINT_ADDED, BadgeTrigger.SOCIAL_PINT_ADDED}
	assert BadgeEvent.friend_connected().triggers == {BadgeTrigger.FRIEND_CONNECTED}


def test_first_friend_on_first_connection():
	snapshot = BadgeSnapshot(friend_count=1)
	assert evaluate(snapshot, BadgeEvent.friend_connected()) == [BadgeId.FIRST_FRIEND]


def test_fifth_friend_awards_butterfly_without_second_first_friend():
	snapshot = BadgeSnapshot(friend_count=5, held=frozenset({"first_friend"}))
	assert evaluate(snapshot, BadgeEvent.friend_connected()) == [BadgeId.SOCIAL_BUTTERFLY]


def test_round_buyer_and_social_pint_from_three_tagged_friends():
	snapshot = BadgeSnapshot(friend_count=3, social_pints=1)
	awarded = evaluate(snapshot, BadgeEvent.pint_added(3))
	assert awarded == [BadgeId.SOCIAL_PINT, BadgeId.ROUND_BUYER]


def test_round_buyer_needs_three_on_the_same_pint():
	snapshot = BadgeSnapshot(friend_count=3, social_pints=1, held=frozenset({"social_pint"}))
	assert evaluate(snapshot, BadgeEvent.pint_added(2)) == []


def test_social_tiers_need_a_tagged_friend_on_the_triggering_pint():
	snapshot = BadgeSnapshot(social_pints=10)
	assert evaluate(snapshot, BadgeEvent.pint_added(0)) == []
	assert evaluate(snapshot, BadgeEvent.pint_added(1)) == [
		BadgeId.SOCIAL_PINT,
		BadgeId.PUB_CRAWLERS,
		BadgeId.THE_REGULAR,
	]


def test_friend_event_never_awards_pint_badges():
	snapshot = BadgeSnapshot(friend_count=0, social_pints=10)
	assert evaluate(snapshot, BadgeEvent.friend_connected()) == []


def test_evaluation_is_idempotent_once_badges_are_held():
	snapshot = BadgeSnapshot(friend_count=6)
	first = evaluate(snapshot, BadgeEvent.friend_connected())
	held = BadgeSnapshot(friend_count=6, held=frozenset(badge.value for badge in first))
	assert first == [BadgeId.FIRST_FRIEND, BadgeId.SOCIAL_BUTTERFLY]
	assert evaluate(held, BadgeEvent.friend_connected()) == []


def test_snapshot_counts_unique_friends():
	user = User(id="alice", display_name="Alice", friend_ids=["bob", "bob", "carol"], social_pints=2)
	snapshot = snapshot_from_user(user)
	assert snapshot.friend_count == 2
	assert snapshot.social_pints == 2
	assert snapshot.held == frozenset()
