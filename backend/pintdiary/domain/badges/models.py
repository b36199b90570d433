"""Badge identifiers, triggers and the fixed award rule table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Mapping


class BadgeId(str, Enum):
	FIRST_FRIEND = "first_friend"
	SOCIAL_PINT = "social_pint"
	ROUND_BUYER = "round_buyer"
	PUB_CRAWLERS = "pub_crawlers"
	THE_REGULAR = "the_regular"
	SOCIAL_BUTTERFLY = "social_butterfly"


class BadgeTrigger(str, Enum):
	FRIEND_CONNECTED = "friend_connected"
	PINT_ADDED = "pint_added"
	SOCIAL_PINT_ADDED = "social_pint_added"


@dataclass(frozen=True)
class BadgeSnapshot:
	"""The counters a rule predicate may look at, read from the user record."""

	friend_count: int = 0
	social_pints: int = 0
	held: frozenset[str] = frozenset()


@dataclass(frozen=True)
class BadgeEvent:
	"""A mutation that may make new badges reachable."""

	kind: BadgeTrigger
	tagged_friends: int = 0

	@classmethod
	def friend_connected(cls) -> "BadgeEvent":
		return cls(kind=BadgeTrigger.FRIEND_CONNECTED)

	@classmethod
	def pint_added(cls, tagged_friends: int) -> "BadgeEvent":
		return cls(kind=BadgeTrigger.PINT_ADDED, tagged_friends=max(0, int(tagged_friends)))

	@property
	def triggers(self) -> frozenset[BadgeTrigger]:
		if self.kind is BadgeTrigger.PINT_ADDED and self.tagged_friends >= 1:
			return frozenset({BadgeTrigger.PINT_ADDED, BadgeTrigger.SOCIAL_PINT_ADDED})
		return frozenset({self.kind})


Predicate = Callable[[BadgeSnapshot, BadgeEvent], bool]


@dataclass(frozen=True)
class BadgeRule:
	badge_id: BadgeId
	trigger: BadgeTrigger
	predicate: Predicate


BADGE_RULES: tuple[BadgeRule, ...] = (
	BadgeRule(BadgeId.FIRST_FRIEND, BadgeTrigger.FRIEND_CONNECTED, lambda s, e: s.friend_count >= 1),
	BadgeRule(BadgeId.SOCIAL_BUTTERFLY, BadgeTrigger.FRIEND_CONNECTED, lambda s, e: s.friend_count >= 5),
	BadgeRule(BadgeId.SOCIAL_PINT, BadgeTrigger.SOCIAL_PINT_ADDED, lambda s, e: s.social_pints >= 1),
	BadgeRule(BadgeId.ROUND_BUYER, BadgeTrigger.PINT_ADDED, lambda s, e: e.tagged_friends >= 3),
	BadgeRule(BadgeId.PUB_CRAWLERS, BadgeTrigger.SOCIAL_PINT_ADDED, lambda s, e: s.social_pints >= 5),
	BadgeRule(BadgeId.THE_REGULAR, BadgeTrigger.SOCIAL_PINT_ADDED, lambda s, e: s.social_pints >= 10),
)


@dataclass(frozen=True)
class BadgeDisplay:
	name: str
	description: str
	icon: str
	color: str


BADGE_CONFIG: dict[BadgeId, BadgeDisplay] = {
	BadgeId.FIRST_FRIEND: BadgeDisplay("First Round", "Connect your first friend", "🤝", "#c9a84c"),
	BadgeId.SOCIAL_PINT: BadgeDisplay("Social Pint", "Log a pint with a friend", "🍺", "#4a7c59"),
	BadgeId.ROUND_BUYER: BadgeDisplay("Round Buyer", "Tag 3+ friends in one pint", "🫗", "#2196F3"),
	BadgeId.PUB_CRAWLERS: BadgeDisplay("Pub Crawlers", "Log 5 pints with friends", "🗺️", "#FF9800"),
	BadgeId.THE_REGULAR: BadgeDisplay("The Regular", "Log 10 pints with friends", "⭐", "#9C27B0"),
	BadgeId.SOCIAL_BUTTERFLY: BadgeDisplay("Social Butterfly", "Connect 5 friends", "🦋", "#E91E63"),
}

# Display order on the passport page
ALL_BADGE_IDS: tuple[BadgeId, ...] = (
	BadgeId.FIRST_FRIEND,
	BadgeId.SOCIAL_PINT,
	BadgeId.ROUND_BUYER,
	BadgeId.PUB_CRAWLERS,
	BadgeId.THE_REGULAR,
	BadgeId.SOCIAL_BUTTERFLY,
)


@dataclass(frozen=True)
class EarnedBadge:
	badge_id: str
	earned_at: datetime

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "EarnedBadge":
		earned_at = record.get("earned_at")
		if isinstance(earned_at, str):
			earned_at = datetime.fromisoformat(earned_at)
		return cls(badge_id=str(record["badge_id"]), earned_at=earned_at)

	def to_record(self) -> dict[str, Any]:
		return {"badge_id": self.badge_id, "earned_at": self.earned_at.isoformat()}


@dataclass(frozen=True)
class BadgeBoardEntry:
	badge_id: BadgeId
	display: BadgeDisplay
	earned: bool
	earned_at: datetime | None = None
