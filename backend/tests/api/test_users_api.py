import pytest

from pintdiary.infra.jwt import encode_access


def auth_headers(user_id: str) -> dict[str, str]:
	return {"X-User-Id": user_id}


@pytest.mark.asyncio
async def test_sign_in_provisions_once(api_client):
	first = await api_client.post(
		"/users/me", headers={"X-User-Id": "alice", "X-User-Name": "Alice", "X-User-Email": "alice@example.com"}
	)
	assert first.status_code == 200
	body = first.json()
	assert body["display_name"] == "Alice"
	assert (body["total_pints"], body["avg_rating"], body["social_pints"]) == (0, 0.0, 0)
	assert body["friend_ids"] == [] and body["badges"] == []

	await api_client.patch("/users/me", json={"home_pub": "The Stag"}, headers=auth_headers("alice"))
	again = await api_client.post("/users/me", headers={"X-User-Id": "alice", "X-User-Name": "Someone Else"})
	assert again.json()["display_name"] == "Alice"
	assert again.json()["home_pub"] == "The Stag"


@pytest.mark.asyncio
async def test_sign_in_without_name_uses_default(api_client):
	body = (await api_client.post("/users/me", headers=auth_headers("anon"))).json()
	assert body["display_name"] == "Guinness Drinker"


@pytest.mark.asyncio
async def test_bearer_token_identity(api_client):
	token = encode_access({"sub": "carol", "name": "Carol"})
	response = await api_client.post("/users/me", headers={"Authorization": f"Bearer {token}"})
	assert response.status_code == 200
	assert response.json()["id"] == "carol"

	bad = await api_client.get("/users/me", headers={"Authorization": "Bearer not-a-token"})
	assert bad.status_code == 401


@pytest.mark.asyncio
async def test_profile_update_validation(api_client):
	await api_client.post("/users/me", headers=auth_headers("alice"))
	blank = await api_client.patch("/users/me", json={"display_name": "  "}, headers=auth_headers("alice"))
	assert blank.status_code == 400
	assert blank.json()["detail"] == "display_name_required"


@pytest.mark.asyncio
async def test_public_profile_hides_private_fields(api_client):
	await api_client.post("/users/me", headers={"X-User-Id": "alice", "X-User-Email": "alice@example.com"})
	await api_client.post("/users/me", headers=auth_headers("bob"))

	profile = (await api_client.get("/users/alice", headers=auth_headers("bob"))).json()

	assert profile["id"] == "alice"
	assert "email" not in profile
	assert (await api_client.get("/users/ghost", headers=auth_headers("bob"))).status_code == 404


@pytest.mark.asyncio
async def test_passport_hides_pints_from_strangers(api_client):
	for user_id in ("alice", "mallory"):
		await api_client.post("/users/me", headers=auth_headers(user_id))
	await api_client.post("/pints", json={"pub_name": "The Stag", "rating": 4}, headers=auth_headers("alice"))

	own = (await api_client.get("/users/alice/passport", headers=auth_headers("alice"))).json()
	stranger = (await api_client.get("/users/alice/passport", headers=auth_headers("mallory"))).json()

	assert own["visible"] is True and len(own["pints"]) == 1
	assert stranger["visible"] is False and stranger["pints"] == []
	assert [badge["badge_id"] for badge in stranger["badges"]][0] == "first_friend"
