import pytest

from pintdiary.settings import settings


def auth_headers(user_id: str) -> dict[str, str]:
	return {"X-User-Id": user_id, "X-User-Name": user_id.title()}


async def _sign_in(api_client, *user_ids: str) -> None:
	for user_id in user_ids:
		response = await api_client.post("/users/me", headers=auth_headers(user_id))
		assert response.status_code == 200


@pytest.mark.asyncio
async def test_connect_friends_and_list(api_client):
	await _sign_in(api_client, "alice", "bob")

	connected = await api_client.post("/friends/bob", headers=auth_headers("alice"))
	assert connected.status_code == 200
	assert connected.json() == {"friend_ids": ["bob"], "new_badges": ["first_friend"]}

	friends = (await api_client.get("/friends", headers=auth_headers("bob"))).json()
	assert [friend["id"] for friend in friends] == ["alice"]

	badges = (await api_client.get("/badges", headers=auth_headers("bob"))).json()
	earned = [badge["badge_id"] for badge in badges if badge["earned"]]
	assert earned == ["first_friend"]
	assert len(badges) == 6


@pytest.mark.asyncio
async def test_connect_errors(api_client):
	await _sign_in(api_client, "alice")
	self_friend = await api_client.post("/friends/alice", headers=auth_headers("alice"))
	assert self_friend.status_code == 400
	assert self_friend.json()["detail"] == "self_friend"
	missing = await api_client.post("/friends/ghost", headers=auth_headers("alice"))
	assert missing.status_code == 404
	assert missing.json()["detail"] == "friend_not_found"


@pytest.mark.asyncio
async def test_friend_link(api_client, monkeypatch):
	monkeypatch.setattr(settings, "public_base_url", "https://pints.example")
	response = await api_client.get("/friends/link", headers=auth_headers("alice"))
	assert response.json() == {"url": "https://pints.example/add-friend/alice"}


@pytest.mark.asyncio
async def test_feed_shows_friends_pints_only(api_client):
	await _sign_in(api_client, "alice", "bob", "carol", "mallory")
	await api_client.post("/friends/bob", headers=auth_headers("alice"))
	await api_client.post("/friends/carol", headers=auth_headers("alice"))
	for user_id, pub in (("bob", "The Stag"), ("mallory", "Secret Bar"), ("carol", "The Crown"), ("alice", "Home")):
		await api_client.post("/pints", json={"pub_name": pub, "rating": 4}, headers=auth_headers(user_id))

	first = (await api_client.get("/feed", params={"page_size": 1}, headers=auth_headers("alice"))).json()
	assert [item["pub_name"] for item in first["items"]] == ["The Crown"]
	assert first["has_more"] is True

	second = (
		await api_client.get("/feed", params={"page_size": 1, "cursor": first["cursor"]}, headers=auth_headers("alice"))
	).json()
	assert [item["pub_name"] for item in second["items"]] == ["The Stag"]

	everything = (await api_client.get("/feed/all", headers=auth_headers("alice"))).json()
	assert [item["pub_name"] for item in everything] == ["The Crown", "The Stag"]


@pytest.mark.asyncio
async def test_feed_rejects_bad_cursor(api_client):
	await _sign_in(api_client, "alice", "bob")
	await api_client.post("/friends/bob", headers=auth_headers("alice"))
	response = await api_client.get("/feed", params={"cursor": "%%%"}, headers=auth_headers("alice"))
	assert response.status_code == 400
	assert response.json()["detail"] == "invalid_cursor"


@pytest.mark.asyncio
async def test_empty_feed_for_friendless_user(api_client):
	await _sign_in(api_client, "alice")
	body = (await api_client.get("/feed", headers=auth_headers("alice"))).json()
	assert body == {"items": [], "cursor": None, "has_more": False}
