"""Best-effort execution of follow-up writes after a primary write succeeded."""

from __future__ import annotations

import logging
from typing import Awaitable, Optional, TypeVar

from pintdiary.domain.exceptions import CollaboratorUnavailable
from pintdiary.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_secondary(operation: str, awaitable: Awaitable[T]) -> Optional[T]:
	"""Await ``awaitable``; an unavailable collaborator is logged, counted and swallowed."""
	try:
		return await awaitable
	except CollaboratorUnavailable:
		logger.warning("Secondary write failed", extra={"operation": operation}, exc_info=True)
		obs_metrics.inc_secondary_failure(operation)
		return None
