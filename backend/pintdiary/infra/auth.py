"""Authentication helpers for FastAPI endpoints.

A Bearer JWT is always accepted. In development the X-User-* headers may stand
in for a token so local tools can act as any user.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pintdiary.infra import jwt as jwt_helper
from pintdiary.obs import logging as obs_logging
from pintdiary.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	display_name: Optional[str] = None
	email: Optional[str] = None
	photo_url: Optional[str] = None


_bearer_scheme = HTTPBearer(auto_error=False)


def _clean(value: object) -> Optional[str]:
	if value is None:
		return None
	text = str(value).strip()
	return text or None


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode an access JWT into an AuthenticatedUser.

	Profile claims: ``name`` (or ``display_name``), ``email``, ``picture`` (or ``photo_url``).
	"""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	return AuthenticatedUser(
		id=str(payload["sub"]).strip(),
		display_name=_clean(payload.get("name") or payload.get("display_name")),
		email=_clean(payload.get("email")),
		photo_url=_clean(payload.get("picture") or payload.get("photo_url")),
	)


async def get_current_user(
	request: Request,
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_name: Optional[str] = Header(default=None, alias="X-User-Name"),
	x_user_email: Optional[str] = Header(default=None, alias="X-User-Email"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user from a Bearer JWT or, in development, X-User-* headers."""
	if credentials and credentials.scheme.lower() == "bearer":
		user = verify_access_jwt(credentials.credentials)
	elif settings.is_dev() and _clean(x_user_id):
		user = AuthenticatedUser(
			id=_clean(x_user_id) or "",
			display_name=_clean(x_user_name),
			email=_clean(x_user_email),
		)
	else:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	# the request log line reads this back once the handler returns
	request.state.user_id = user.id
	obs_logging.bind_context(user_id=user.id)
	return user
