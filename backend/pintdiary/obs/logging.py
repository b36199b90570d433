"""JSON logging for the pint diary API.

Every record is rendered as one JSON object. Request-scoped fields bound by the
HTTP middleware (request id, route, caller, client ip) are attached to every
line logged while the request is in flight. ``extra`` fields are copied in
after redaction: pint coordinates, free-text notes and credentials never reach
the log stream.
"""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pintdiary.settings import settings

_ROOT_LOGGER = "pintdiary"

_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("pintdiary_log_context", default={})

REDACTED = "[redacted]"

# Extra-field names containing one of these are dropped
_REDACT_MARKERS = ("authorization", "password", "secret", "token", "email", "location", "body")
# ... as are names with one of these as an underscore-separated word
_REDACT_WORDS = frozenset({"lat", "lng", "latitude", "longitude", "note", "notes"})

_MAX_TEXT = 256
_MAX_ITEMS = 10
_ELLIPSIS = "…"

# LogRecord attributes that are not caller-supplied extras
_RECORD_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def bind_context(
	*,
	request_id: Optional[str] = None,
	route: Optional[str] = None,
	user_id: Optional[str] = None,
	client_ip: Optional[str] = None,
) -> Token:
	"""Add fields to the current logging context; pass the token to ``reset_context``."""
	fields = {"request_id": request_id, "route": route, "user_id": user_id, "ip": client_ip}
	merged = dict(_CONTEXT.get())
	merged.update({key: value for key, value in fields.items() if value})
	return _CONTEXT.set(merged)


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT.get().get("request_id")


def _is_sensitive(name: str) -> bool:
	lowered = name.lower()
	if any(marker in lowered for marker in _REDACT_MARKERS):
		return True
	return not _REDACT_WORDS.isdisjoint(lowered.split("_"))


def _clip(value: Any) -> Any:
	if isinstance(value, str):
		return value if len(value) <= _MAX_TEXT else value[:_MAX_TEXT] + _ELLIPSIS
	if isinstance(value, Mapping):
		clipped: dict[str, Any] = {}
		for idx, (key, nested) in enumerate(value.items()):
			if idx == _MAX_ITEMS:
				clipped[_ELLIPSIS] = f"+{len(value) - _MAX_ITEMS} keys"
				break
			clipped[str(key)] = redact(str(key), nested)
		return clipped
	if isinstance(value, (list, tuple, set, frozenset)):
		items = [_clip(item) for item in value]
		if len(items) > _MAX_ITEMS:
			items = items[:_MAX_ITEMS] + [_ELLIPSIS]
		return items
	return value


def redact(name: str, value: Any) -> Any:
	"""Value safe to log under ``name``: dropped when sensitive, clipped otherwise."""
	if _is_sensitive(name):
		return REDACTED
	return _clip(value)


class JSONLogFormatter(logging.Formatter):
	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"logger": record.name,
			"msg": record.getMessage(),
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		payload.update(_CONTEXT.get())
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for name, value in vars(record).items():
			if name in _RECORD_FIELDS or name.startswith("_"):
				continue
			payload[name] = redact(name, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Keep a ``obs_log_sampling_rate_info`` share of INFO records; every other level passes."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = min(1.0, max(0.0, settings.obs_log_sampling_rate_info))
		return rate >= 1.0 or random.random() < rate


def configure_logging() -> logging.Logger:
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root = logging.getLogger()
	root.handlers[:] = [handler]
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_ROOT_LOGGER)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _ROOT_LOGGER)
