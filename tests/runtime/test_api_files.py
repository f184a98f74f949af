"""HTTP tests for the workspace, file, settings, plugin and health endpoints."""

from __future__ import annotations

from pathlib import Path

from httpx import AsyncClient

from codepocket.runtime.settings import CodePocketSettings

CORS = {
    "access-control-allow-origin": "*",
    "access-control-allow-headers": "Content-Type, Authorization",
    "access-control-allow-methods": "GET, POST, OPTIONS, PUT, DELETE",
}


def _assert_cors(headers) -> None:
    for key, value in CORS.items():
        assert headers[key] == value


# -- Health & CORS -------------------------------------------------------------


async def test_health(client: AsyncClient) -> None:
    for path in ("/health", "/api/health"):
        resp = await client.get(path)
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert isinstance(body["uptime"], int)
        _assert_cors(resp.headers)


async def test_options_short_circuits(client: AsyncClient) -> None:
    resp = await client.options("/api/file?ws=abc&path=a.txt")
    assert resp.status_code == 204
    assert resp.content == b""
    _assert_cors(resp.headers)


# -- Workspaces ----------------------------------------------------------------


async def test_list_workspaces(client: AsyncClient, settings: CodePocketSettings) -> None:
    resp = await client.get("/api/workspaces")
    assert resp.json() == {"workspaces": []}

    (settings.workspaces_root / "ws_2").mkdir()
    (settings.workspaces_root / "ws_1").mkdir()
    (settings.workspaces_root / "stray.txt").write_text("not a workspace")
    resp = await client.get("/api/workspaces")
    assert resp.json() == {"workspaces": ["ws_1", "ws_2"]}


# -- Files ---------------------------------------------------------------------


async def test_file_write_read_stat(client: AsyncClient, sandbox: Path) -> None:
    resp = await client.post("/api/file", params={"ws": "abc", "path": "src/app.js"}, content=b"let x = 1;\n")
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert (sandbox / "src" / "app.js").read_text() == "let x = 1;\n"

    resp = await client.get("/api/file", params={"ws": "abc", "path": "src/app.js"})
    assert resp.status_code == 200
    assert resp.text == "let x = 1;\n"

    resp = await client.get("/api/stat", params={"ws": "abc", "path": "src/app.js"})
    stat = resp.json()
    assert stat["type"] == "file"
    assert stat["size"] == 11
    assert set(stat) == {"size", "mtimeMs", "ctimeMs", "type", "mode"}

    resp = await client.get("/api/stat", params={"ws": "abc", "path": "src"})
    assert resp.json()["type"] == "directory"


async def test_readdir(client: AsyncClient, sandbox: Path) -> None:
    (sandbox / "a.txt").write_text("a")
    (sandbox / "sub").mkdir()

    resp = await client.get("/api/readdir", params={"ws": "abc", "path": ""})
    assert resp.status_code == 200
    assert sorted(resp.json()["files"]) == ["a.txt", "sub"]

    resp = await client.get("/api/readdir", params={"ws": "abc", "path": "missing"})
    assert resp.status_code == 404


async def test_file_tree(client: AsyncClient, sandbox: Path) -> None:
    (sandbox / "src").mkdir()
    (sandbox / "src" / "main.py").write_text("x = 1\n")
    (sandbox / "README.md").write_text("hi")

    resp = await client.get("/api/files", params={"ws": "abc"})
    assert resp.status_code == 200
    assert resp.json() == {
        "files": [
            {"name": "README.md", "path": "README.md", "type": "file", "size": 2},
            {
                "name": "src",
                "path": "src",
                "type": "directory",
                "children": [{"name": "main.py", "path": "src/main.py", "type": "file", "size": 6}],
            },
        ]
    }

    resp = await client.get("/api/files", params={"ws": "nope"})
    assert resp.status_code == 404


async def test_not_found_errors(client: AsyncClient, sandbox: Path) -> None:
    resp = await client.get("/api/file", params={"ws": "abc", "path": "missing.txt"})
    assert resp.status_code == 404
    assert "error" in resp.json()

    resp = await client.get("/api/stat", params={"ws": "abc", "path": "missing.txt"})
    assert resp.status_code == 404


async def test_path_traversal_is_forbidden(client: AsyncClient, sandbox: Path) -> None:
    resp = await client.get("/api/file", params={"ws": "abc", "path": "../../etc/passwd"})
    assert resp.status_code == 403
    assert resp.json() == {"error": "Access denied"}
    _assert_cors(resp.headers)

    resp = await client.post("/api/file", params={"ws": "abc", "path": "../escape.txt"}, content=b"x")
    assert resp.status_code == 403
    assert not (sandbox.parent / "escape.txt").exists()

    resp = await client.get("/api/readdir", params={"ws": "..", "path": ""})
    assert resp.status_code == 403


async def test_mkdir_unlink_rmdir(client: AsyncClient, sandbox: Path) -> None:
    for _ in range(2):
        resp = await client.post("/api/mkdir", params={"ws": "abc", "path": "a/b"})
        assert resp.status_code == 200
        assert resp.json() == {}
    assert (sandbox / "a" / "b").is_dir()

    (sandbox / "a" / "f.txt").write_text("x")
    for _ in range(2):
        resp = await client.post("/api/unlink", params={"ws": "abc", "path": "a/f.txt"})
        assert resp.status_code == 200
    assert not (sandbox / "a" / "f.txt").exists()

    for _ in range(2):
        resp = await client.post("/api/rmdir", params={"ws": "abc", "path": "a/b"})
        assert resp.status_code == 200
    assert not (sandbox / "a" / "b").exists()


async def test_rmdir_non_empty_is_500(client: AsyncClient, sandbox: Path) -> None:
    (sandbox / "full").mkdir()
    (sandbox / "full" / "f.txt").write_text("x")

    resp = await client.post("/api/rmdir", params={"ws": "abc", "path": "full"})
    assert resp.status_code == 500
    assert resp.json()["error"]


async def test_missing_parameter_is_400(client: AsyncClient) -> None:
    resp = await client.get("/api/file", params={"ws": "abc"})
    assert resp.status_code == 400
    assert "path" in resp.json()["error"]

    resp = await client.post("/api/mkdir")
    assert resp.status_code == 400


# -- Settings & plugins --------------------------------------------------------


async def test_settings_blob(client: AsyncClient, settings: CodePocketSettings) -> None:
    resp = await client.get("/api/settings")
    assert resp.status_code == 200
    assert resp.json() == {}

    blob = b'{"editor.fontSize": 14, "theme": "dark"}'
    resp = await client.post("/api/settings", content=blob)
    assert resp.json() == {"success": True}
    assert settings.settings_file.read_bytes() == blob

    resp = await client.get("/api/settings")
    assert resp.content == blob
    assert resp.headers["content-type"] == "application/json"


async def test_plugins(client: AsyncClient, settings: CodePocketSettings) -> None:
    resp = await client.get("/api/plugins")
    assert resp.json() == {"plugins": []}

    (settings.plugins_dir / "b.js").write_text("console.log('b');")
    (settings.plugins_dir / "a.js").write_text("console.log('a');")
    (settings.plugins_dir / "readme.txt").write_text("ignored")

    resp = await client.get("/api/plugins")
    assert resp.json() == {"plugins": ["a.js", "b.js"]}

    resp = await client.get("/api/plugin", params={"name": "a.js"})
    assert resp.status_code == 200
    assert resp.text == "console.log('a');"
    assert resp.headers["content-type"].startswith("application/javascript")

    resp = await client.get("/api/plugin", params={"name": "missing.js"})
    assert resp.status_code == 404

    resp = await client.get("/api/plugin", params={"name": "../settings.json"})
    assert resp.status_code == 403
