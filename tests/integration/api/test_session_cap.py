import pytest
from httpx import AsyncClient

from config import ApplicationConfig


@pytest.mark.asyncio
async def test_sixth_login_evicts_least_recently_used_session(client: AsyncClient, seed_user, login, bearer):
    """Each login succeeds; the user never holds more than the configured maximum"""
    assert ApplicationConfig.MAX_SESSIONS_PER_USER == 5
    await seed_user()

    logins = [await login() for _ in range(6)]
    newest = logins[-1]

    sessions = await client.get("/auth/sessions", headers=bearer(newest["access_token"]))
    assert sessions.status_code == 200
    listed = [s["id"] for s in sessions.json()]
    assert len(listed) == 5
    assert logins[0]["session_id"] not in listed
    # Most recently used first
    assert listed == [t["session_id"] for t in reversed(logins[1:])]

    evicted = await client.get("/me", headers=bearer(logins[0]["access_token"]))
    assert evicted.status_code == 401
    assert evicted.json()["error"]["code"] == "SESSION_INACTIVE"

    for tokens in logins[1:]:
        me = await client.get("/me", headers=bearer(tokens["access_token"]))
        assert me.status_code == 200


@pytest.mark.asyncio
async def test_cap_keeps_recently_used_session(client: AsyncClient, seed_user, login, bearer):
    await seed_user()
    logins = [await login() for _ in range(5)]

    # The first session is the oldest but also the most recently used
    used = await client.get("/me", headers=bearer(logins[0]["access_token"]))
    assert used.status_code == 200

    await login()

    kept = await client.get("/me", headers=bearer(logins[0]["access_token"]))
    evicted = await client.get("/me", headers=bearer(logins[1]["access_token"]))
    assert kept.status_code == 200
    assert evicted.status_code == 401
    assert evicted.json()["error"]["code"] == "SESSION_INACTIVE"


@pytest.mark.asyncio
async def test_cap_is_per_user(client: AsyncClient, seed_user, login, bearer):
    await seed_user(email="alice@acme.com")
    await seed_user(email="bob@acme.com")

    bob = await login("bob@acme.com")
    for _ in range(6):
        await login("alice@acme.com")

    me = await client.get("/me", headers=bearer(bob["access_token"]))
    assert me.status_code == 200
