import asyncio

import httpx
import pytest

from mingle.config import Settings
from mingle.webapp.api import create_webapp_api

TEST_SECRET = "test-secret"


class _ASGITestClient:
    """Sync wrapper around httpx.AsyncClient + ASGITransport."""

    def __init__(self, app, base_url: str = "http://testserver"):
        self._app = app
        self._base_url = base_url

    def _request(self, method: str, url: str, token: str = None, **kwargs):
        headers = dict(kwargs.pop("headers", None) or {})
        if token:
            headers["Authorization"] = f"Bearer {token}"

        async def _run():
            async with httpx.AsyncClient(
                transport=httpx.ASGITransport(app=self._app, raise_app_exceptions=False),
                base_url=self._base_url,
            ) as client:
                return await client.request(method, url, headers=headers, **kwargs)

        return asyncio.run(_run())

    def get(self, url: str, **kwargs):
        return self._request("GET", url, **kwargs)

    def post(self, url: str, **kwargs):
        return self._request("POST", url, **kwargs)

    def put(self, url: str, **kwargs):
        return self._request("PUT", url, **kwargs)

    def delete(self, url: str, **kwargs):
        return self._request("DELETE", url, **kwargs)


@pytest.fixture
def app(db):
    settings = Settings(database_url=db.url, auth_secret=TEST_SECRET)
    return create_webapp_api(settings=settings, database=db)


@pytest.fixture
def client(app):
    return _ASGITestClient(app)


@pytest.fixture
def register(client):
    """Factory: register(name) -> (user dict, token)."""

    def _register(username: str, password: str = "secret123"):
        response = client.post(
            "/api/auth/register",
            json={
                "username": username,
                "email": f"{username.lower()}@example.com",
                "password": password,
                "confirm_password": password,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], body["token"]

    return _register
