"""Domain-level exceptions shared by the pint, stats, badge, feed and social flows."""

from __future__ import annotations


class DiaryError(Exception):
	"""Base class for pint diary errors."""

	reason: str = "unknown"

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason


class NotFound(DiaryError):
	"""A referenced user or pint does not exist."""

	reason = "not_found"


class Unauthorized(DiaryError):
	"""The caller does not own the record it is trying to change."""

	reason = "unauthorized"


class InvalidArgument(DiaryError):
	reason = "invalid_argument"


class CollaboratorUnavailable(DiaryError):
	"""The entity store, object store or places provider failed or timed out."""

	reason = "unavailable"
