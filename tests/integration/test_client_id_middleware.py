"""Integration tests for ClientIdMiddleware."""

from httpx import AsyncClient


class TestPublicPaths:
    """Paths outside the API prefix need no client id."""

    async def test_health_check(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"status": "healthy"}

    async def test_root(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/")
        assert resp.status_code == 200

    async def test_docs(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/docs")
        assert resp.status_code == 200


class TestApiPaths:
    """Paths under the API prefix require X-Client-Id."""

    async def test_missing_client_id(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/api/chat/sessions")
        assert resp.status_code == 401
        assert resp.json() == {
            "status": 401,
            "message": "Client ID is required",
            "code": "CLIENT_ID_REQUIRED",
        }

    async def test_blank_client_id(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/api/chat/sessions", headers={"X-Client-Id": "  "})
        assert resp.status_code == 401

    async def test_unsafe_client_id(self, async_client: AsyncClient) -> None:
        resp = await async_client.get(
            "/api/chat/sessions", headers={"X-Client-Id": "../etc"}
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_CLIENT_ID"

    async def test_too_long_client_id(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/api/chat/sessions", headers={"X-Client-Id": "a" * 65})
        assert resp.status_code == 400

    async def test_valid_client_id(self, client: AsyncClient) -> None:
        resp = await client.get("/api/chat/sessions")
        assert resp.status_code == 200

    async def test_preflight_passes_through(self, async_client: AsyncClient) -> None:
        resp = await async_client.options(
            "/api/chat/sessions",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert resp.status_code != 401

    async def test_non_ascii_client_id(self, async_client: AsyncClient) -> None:
        # Latin-1 letters pass str.isalnum but must not reach the file system.
        resp = await async_client.get(
            "/api/chat/sessions", headers={"X-Client-Id": "caf\xe9".encode("latin-1")}
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_CLIENT_ID"

    async def test_utf8_client_id(self, async_client: AsyncClient) -> None:
        resp = await async_client.get(
            "/api/chat/sessions", headers={"X-Client-Id": "客户".encode()}
        )
        assert resp.status_code == 400
