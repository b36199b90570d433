import pytest

from pintdiary.domain.exceptions import InvalidArgument
from pintdiary.infra import storage


@pytest.mark.parametrize(
	"content, content_type, reason",
	[
		(b"", "image/png", "size_invalid"),
		(b"x" * 11, "image/png", "size_exceeded"),
		(b"GIF89a", "image/gif", "mime_invalid"),
	],
)
def test_validate_photo_rejects(content, content_type, reason):
	with pytest.raises(InvalidArgument) as excinfo:
		storage.validate_photo(content, content_type, max_bytes=10)
	assert excinfo.value.reason == reason


def test_validate_photo_accepts_case_insensitive_mime():
	storage.validate_photo(b"\xff\xd8\xff", "IMAGE/JPEG", max_bytes=10)


def test_photo_key_is_scoped_to_user():
	key = storage.build_photo_key("alice", "image/webp")
	prefix, user_id, name = key.split("/")
	assert (prefix, user_id) == ("pints", "alice")
	assert name.endswith(".webp")
	assert key != storage.build_photo_key("alice", "image/webp")


@pytest.mark.asyncio
async def test_local_store_writes_and_returns_public_url(tmp_path):
	objects = storage.LocalObjectStore(root=str(tmp_path), base_url="http://cdn.test/uploads/")

	url = await objects.upload("pints/alice/photo.png", b"\x89PNG", "image/png")

	assert url == "http://cdn.test/uploads/pints/alice/photo.png"
	assert (tmp_path / "pints" / "alice" / "photo.png").read_bytes() == b"\x89PNG"


@pytest.mark.asyncio
async def test_local_store_rejects_paths_outside_root(tmp_path):
	objects = storage.LocalObjectStore(root=str(tmp_path / "uploads"), base_url="http://cdn.test")
	with pytest.raises(InvalidArgument):
		await objects.upload("../escape.png", b"x", "image/png")
