"""Health check helpers for liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Tuple

from pintdiary.infra.store import get_store
from pintdiary.obs import metrics
from pintdiary.settings import settings

LOGGER = logging.getLogger(__name__)


async def _store_status(timeout: float = 0.5) -> Dict[str, Any]:
	store = get_store()
	start = perf_counter()
	try:
		ok = await asyncio.wait_for(store.ping(), timeout=timeout)
	except Exception as exc:
		metrics.mark_store(store.backend, False)
		LOGGER.warning("Store readiness check failed", exc_info=True)
		return {"ok": False, "backend": store.backend, "error": str(exc)}
	latency = perf_counter() - start
	metrics.mark_store(store.backend, bool(ok))
	return {"ok": bool(ok), "backend": store.backend, "latency_ms": round(latency * 1000, 2)}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	store_state = await _store_status()
	status_code = 200 if store_state.get("ok") else 503
	return (
		status_code,
		{
			"status": "ok" if status_code == 200 else "degraded",
			"service": settings.service_name,
			"commit": settings.git_commit,
			"store": store_state,
		},
	)
