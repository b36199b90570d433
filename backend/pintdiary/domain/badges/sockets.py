"""Socket.IO namespace pushing badge awards to their owner."""

from __future__ import annotations

import logging
from typing import Optional

import socketio
from fastapi import HTTPException

from pintdiary.infra.auth import verify_access_jwt
from pintdiary.obs import metrics as obs_metrics
from pintdiary.settings import settings

logger = logging.getLogger(__name__)

_namespace: Optional["BadgesNamespace"] = None


def _header(scope: dict, name: str) -> Optional[str]:
	target = name.encode().lower()
	for key, value in scope.get("headers", []):
		if key.lower() == target:
			return value.decode()
	return None


class BadgesNamespace(socketio.AsyncNamespace):
	"""Namespace that keeps each client in their personal room."""

	def __init__(self) -> None:
		super().__init__("/badges")
		self._users: dict[str, str] = {}

	def _resolve_user_id(self, scope: dict, auth: dict) -> Optional[str]:
		token = auth.get("token")
		if token:
			try:
				return verify_access_jwt(str(token)).id
			except HTTPException:
				return None
		if settings.is_dev():
			return auth.get("userId") or _header(scope, "x-user-id")
		return None

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		scope = environ.get("asgi.scope", environ)
		auth_payload = auth or environ.get("auth") or scope.get("auth") or {}
		user_id = self._resolve_user_id(scope, auth_payload)
		if not user_id:
			raise ConnectionRefusedError("unauthorized")
		obs_metrics.socket_connected(self.namespace)
		self._users[sid] = str(user_id)
		await self.enter_room(sid, self.user_room(str(user_id)))

	async def on_disconnect(self, sid: str) -> None:
		user_id = self._users.pop(sid, None)
		if user_id:
			obs_metrics.socket_disconnected(self.namespace)
			await self.leave_room(sid, self.user_room(user_id))

	@staticmethod
	def user_room(user_id: str) -> str:
		return f"user:{user_id}"


def set_namespace(namespace: Optional[BadgesNamespace]) -> None:
	global _namespace
	_namespace = namespace


async def emit_badge_awarded(user_id: str, payload: dict) -> None:
	"""Push an award to the owner's sockets; a failed push never fails the caller."""
	if _namespace is None:
		return
	obs_metrics.socket_event(_namespace.namespace, "badge:awarded")
	try:
		await _namespace.emit("badge:awarded", payload, room=BadgesNamespace.user_room(user_id))
	except Exception:
		obs_metrics.inc_secondary_failure("badge_push")
		logger.warning("Badge push failed", extra={"user_id": user_id}, exc_info=True)
