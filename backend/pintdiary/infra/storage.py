"""Object storage for pint photos.

``LocalObjectStore`` writes under ``settings.upload_root`` and serves the files
from ``settings.upload_base_url`` (mounted at ``/uploads`` in development).
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Protocol

import ulid

from pintdiary.domain.exceptions import CollaboratorUnavailable, InvalidArgument
from pintdiary.settings import settings

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/webp"}
PHOTO_PREFIX = "pints"


class ObjectStore(Protocol):
	async def upload(self, path: str, content: bytes, content_type: str) -> str:
		...


def _mime_to_ext(mime: str) -> str:
	mapping = {
		"image/jpeg": ".jpg",
		"image/png": ".png",
		"image/webp": ".webp",
	}
	return mapping.get(mime.lower(), ".jpg")


def validate_photo(content: bytes, content_type: str, *, max_bytes: Optional[int] = None) -> None:
	limit = max_bytes if max_bytes is not None else settings.max_photo_bytes
	if not content:
		raise InvalidArgument("size_invalid")
	if len(content) > limit:
		raise InvalidArgument("size_exceeded")
	if (content_type or "").lower() not in ALLOWED_MIME_TYPES:
		raise InvalidArgument("mime_invalid")


def build_photo_key(user_id: str, content_type: str) -> str:
	return f"{PHOTO_PREFIX}/{user_id}/{ulid.new()}{_mime_to_ext(content_type)}"


class LocalObjectStore:
	"""Filesystem-backed object store returning public URLs under a base URL."""

	def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None) -> None:
		self.root = Path(root or settings.upload_root)
		self.base_url = (base_url or settings.upload_base_url).rstrip("/")

	def _target(self, path: str) -> Path:
		target = (self.root / path).resolve()
		if not target.is_relative_to(self.root.resolve()):
			raise InvalidArgument("path_invalid")
		return target

	@staticmethod
	def _write(target: Path, content: bytes) -> None:
		target.parent.mkdir(parents=True, exist_ok=True)
		target.write_bytes(content)

	async def upload(self, path: str, content: bytes, content_type: str) -> str:
		target = self._target(path)
		try:
			await asyncio.to_thread(self._write, target, content)
		except OSError as exc:
			logger.warning("Photo write failed: %s", exc)
			raise CollaboratorUnavailable("object_store") from exc
		return f"{self.base_url}/{path}"


_object_store: Optional[ObjectStore] = None


def get_object_store() -> ObjectStore:
	global _object_store
	if _object_store is None:
		_object_store = LocalObjectStore()
	return _object_store


def set_object_store(store: Optional[ObjectStore]) -> None:
	global _object_store
	_object_store = store
