import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_me_without_token(client: AsyncClient):
    response = await client.get("/me")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "TOKEN_MISSING"


@pytest.mark.asyncio
async def test_me_with_malformed_header(client: AsyncClient):
    response = await client.get("/me", headers={"Authorization": "Token abc"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "TOKEN_MISSING"


@pytest.mark.asyncio
async def test_me_with_tampered_token(client: AsyncClient, seed_user, login, bearer):
    await seed_user()
    tokens = await login()
    header, payload, signature = tokens["access_token"].split(".")
    i = len(signature) // 2
    replacement = "A" if signature[i] != "A" else "B"
    tampered = ".".join([header, payload, signature[:i] + replacement + signature[i + 1:]])

    response = await client.get("/me", headers=bearer(tampered))

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "TOKEN_INVALID"


@pytest.mark.asyncio
async def test_me_returns_principal(client: AsyncClient, seed_user, login, bearer):
    user = await seed_user(name="Jane Doe")
    tokens = await login()

    response = await client.get("/me", headers=bearer(tokens["access_token"]))

    assert response.status_code == 200
    assert response.json()["user"] == {
        "id": str(user.id),
        "email": "user@acme.com",
        "name": "Jane Doe",
        "role": "user",
    }


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
