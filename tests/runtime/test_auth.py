"""Token guard tests."""

from __future__ import annotations

import stat
from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from codepocket.runtime.app import app
from codepocket.runtime.auth import issue_token
from codepocket.runtime.host import CodePocketRuntime
from codepocket.runtime.settings import CodePocketSettings

TOKEN = "s3cret-token"


@pytest.fixture
async def guarded_client(tmp_path) -> AsyncIterator[AsyncClient]:
    runtime = CodePocketRuntime(CodePocketSettings(data_root=str(tmp_path / "data"), auth_token=TOKEN)).initialize()
    app.state.runtime = runtime
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.state.runtime = None
    await runtime.shutdown()


async def test_missing_token_is_rejected(guarded_client: AsyncClient) -> None:
    resp = await guarded_client.get("/api/workspaces")
    assert resp.status_code == 403
    assert resp.json() == {"error": "Unauthorized"}
    assert resp.headers["access-control-allow-origin"] == "*"


async def test_wrong_token_is_rejected(guarded_client: AsyncClient) -> None:
    resp = await guarded_client.get("/api/workspaces", params={"token": "wrong"})
    assert resp.status_code == 403


async def test_bearer_token(guarded_client: AsyncClient) -> None:
    resp = await guarded_client.get("/api/workspaces", headers={"Authorization": f"Bearer {TOKEN}"})
    assert resp.status_code == 200


async def test_query_token(guarded_client: AsyncClient) -> None:
    resp = await guarded_client.get("/api/workspaces", params={"token": TOKEN})
    assert resp.status_code == 200


async def test_bearer_takes_precedence(guarded_client: AsyncClient) -> None:
    resp = await guarded_client.get(
        "/api/workspaces",
        params={"token": TOKEN},
        headers={"Authorization": "Bearer not-the-token"},
    )
    assert resp.status_code == 403


async def test_health_is_exempt(guarded_client: AsyncClient) -> None:
    assert (await guarded_client.get("/api/health")).status_code == 200
    assert (await guarded_client.get("/health")).status_code == 200


async def test_options_needs_no_token(guarded_client: AsyncClient) -> None:
    resp = await guarded_client.options("/api/workspaces")
    assert resp.status_code == 204


async def test_open_when_no_token(client: AsyncClient) -> None:
    resp = await client.get("/api/workspaces")
    assert resp.status_code == 200


def test_issue_token_is_picked_up(tmp_path) -> None:
    settings = CodePocketSettings(data_root=str(tmp_path / "data"))
    assert settings.resolve_auth_token() is None

    token = issue_token(settings.auth_token_file)
    assert len(token) >= 32
    assert stat.S_IMODE(settings.auth_token_file.stat().st_mode) == 0o600
    assert settings.resolve_auth_token() == token
    assert CodePocketRuntime(settings).auth_token == token

    # An explicit setting wins over the token file.
    explicit = CodePocketSettings(data_root=str(tmp_path / "data"), auth_token="explicit")
    assert explicit.resolve_auth_token() == "explicit"
