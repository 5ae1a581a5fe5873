from ayomabar.service.auth import create_refresh_token

from conftest import auth_header, create_user

REGISTER = {"name": "Alice", "username": "alice", "email": "alice@example.com", "password": "hunter2hunter2"}


async def test_register_then_login(client):
    response = await client.post("/auth/register", json=REGISTER)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["statusCode"] == 201
    assert body["message"] == "User registered successfully"
    assert body["data"]["user"]["username"] == "alice"
    assert "password" not in body["data"]["user"]
    assert body["data"]["access_token"]

    for login in ("alice", "alice@example.com"):
        response = await client.post("/auth/login", json={"username": login, "password": REGISTER["password"]})
        assert response.status_code == 200
        assert response.json()["data"]["user"]["email"] == "alice@example.com"


async def test_register_conflicts(client):
    await client.post("/auth/register", json=REGISTER)

    response = await client.post("/auth/register", json=REGISTER | {"email": "other@example.com"})
    assert response.status_code == 409
    assert response.json()["error"]["msg_key"] == "username_taken"

    response = await client.post("/auth/register", json=REGISTER | {"username": "alice2"})
    assert response.json()["error"]["msg_key"] == "email_taken"


async def test_register_validation_error_envelope(client):
    response = await client.post("/auth/register", json=REGISTER | {"password": "short"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["data"] is None
    assert body["message"] == "Validation failed"
    assert body["error"]["kind"] == "bad_request"
    assert body["error"]["details"]


async def test_login_with_wrong_password(client):
    await client.post("/auth/register", json=REGISTER)
    response = await client.post("/auth/login", json={"username": "alice", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["error"] == {"kind": "unauthorized", "msg_key": "invalid_credentials"}


async def test_me_requires_token(client, host):
    response = await client.get("/auth/me")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json()["error"]["msg_key"] == "not_authenticated"

    response = await client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.json()["error"]["msg_key"] == "invalid_token"

    response = await client.get("/auth/me", headers=auth_header(host))
    assert response.json()["data"]["username"] == "alice"


async def test_refresh_token(client, host):
    response = await client.post("/auth/refresh", json={"refresh_token": create_refresh_token(host)})
    assert response.status_code == 200
    assert response.json()["data"]["access_token"]

    # access tokens are not accepted as refresh tokens
    response = await client.post("/auth/refresh", json={"refresh_token": auth_header(host)["Authorization"][7:]})
    assert response.json()["error"]["msg_key"] == "invalid_refresh_token"


async def test_update_profile_and_public_view(client, host):
    profile = {"bio": "support main", "playstyle": "chill"}
    response = await client.put("/user/me", json=profile, headers=auth_header(host))
    assert response.status_code == 200
    assert response.json()["data"]["bio"] == "support main"

    public = (await client.get(f"/user/{host.id}")).json()["data"]
    assert public["playstyle"] == "chill"
    assert "email" not in public

    missing = await client.get("/user/9999")
    assert missing.status_code == 404
    assert missing.json()["error"]["kind"] == "not_found"


async def test_game_writes_need_admin(client, db, host):
    admin = await create_user(db, "root", roles=["admin"])
    ranks = [{"name": "Herald", "tier": 1}, {"name": "Guardian", "tier": 2}]
    body = {"title": "Dota 2", "genre": "MOBA", "ranks": ranks}

    forbidden = await client.post("/game", json=body, headers=auth_header(host))
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["msg_key"] == "admin_required"

    created = await client.post("/game", json=body, headers=auth_header(admin))
    assert created.status_code == 201
    game = created.json()["data"]
    assert [rank["name"] for rank in game["ranks"]] == ["Herald", "Guardian"]

    updated = await client.put(f"/game/{game['id']}", json={"platform": "PC"}, headers=auth_header(admin))
    assert updated.json()["data"]["platform"] == "PC"

    listed = (await client.get("/game", params={"search": "dota"})).json()["data"]
    assert listed["meta"]["total"] == 1

    deleted = await client.delete(f"/game/{game['id']}", headers=auth_header(admin))
    assert deleted.status_code == 200
    assert (await client.get(f"/game/{game['id']}")).status_code == 404
