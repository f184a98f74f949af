"""CLI tests using click's CliRunner."""

from __future__ import annotations

import os
import re
from pathlib import Path

import pytest
from click.testing import CliRunner

from codepocket.cli import main
from codepocket.runtime.settings import _get_settings_cached, get_settings


@pytest.fixture
def runner(monkeypatch) -> CliRunner:
    # Keep loguru's sinks pointed at the real stderr, not CliRunner's buffers.
    monkeypatch.setattr("codepocket.runtime.log.setup_logging", lambda *args, **kwargs: None)
    return CliRunner()


def _mirror(runner: CliRunner, source: Path) -> str:
    result = runner.invoke(main, ["workspace", "mirror", str(source)])
    assert result.exit_code == 0, result.output
    match = re.search(r"into workspace (ws_\d+_\d{4})", result.output)
    assert match, result.output
    return match.group(1)


def test_mirror_list_and_delete(runner: CliRunner, source_tree: Path) -> None:
    result = runner.invoke(main, ["workspace", "list"])
    assert result.exit_code == 0
    assert "No workspaces." in result.output

    result = runner.invoke(main, ["workspace", "mirror", str(source_tree)])
    assert result.exit_code == 0, result.output
    assert "[1/6] README.md" in result.output
    assert "[6/6] src/util/helpers.py" in result.output
    assert "Mirrored 6 entries" in result.output
    workspace_id = re.search(r"(ws_\d+_\d{4})", result.output).group(1)

    result = runner.invoke(main, ["workspace", "list"])
    assert workspace_id in result.output
    assert "source" in result.output
    assert "unsynced" not in result.output

    result = runner.invoke(main, ["workspace", "delete", workspace_id])
    assert result.exit_code == 0
    assert not (get_settings().workspaces_root / workspace_id).exists()
    assert (source_tree / "README.md").exists()


def test_edit_check_export(runner: CliRunner, source_tree: Path) -> None:
    workspace_id = _mirror(runner, source_tree)
    sandbox = get_settings().workspaces_root / workspace_id

    result = runner.invoke(main, ["workspace", "export", workspace_id])
    assert result.exit_code == 0
    assert "Exported 0 files" in result.output

    edited = sandbox / "README.md"
    edited.write_text("# Edited\n")
    stat = edited.stat()
    future = stat.st_mtime_ns + 60 * 1_000_000_000
    os.utime(edited, ns=(future, future))

    result = runner.invoke(main, ["workspace", "check", workspace_id])
    assert "unsynced changes" in result.output

    result = runner.invoke(main, ["workspace", "export", workspace_id])
    assert result.exit_code == 0, result.output
    assert "[1/1] README.md" in result.output
    assert (source_tree / "README.md").read_text() == "# Edited\n"


def test_refresh(runner: CliRunner, source_tree: Path) -> None:
    workspace_id = _mirror(runner, source_tree)
    (source_tree / "new.txt").write_text("new")

    result = runner.invoke(main, ["workspace", "refresh", workspace_id])
    assert result.exit_code == 0, result.output
    assert "Refreshed 7 entries" in result.output
    assert (get_settings().workspaces_root / workspace_id / "new.txt").read_text() == "new"


def test_delete_keep_files(runner: CliRunner, source_tree: Path) -> None:
    workspace_id = _mirror(runner, source_tree)

    result = runner.invoke(main, ["workspace", "delete", workspace_id, "--keep-files"])
    assert result.exit_code == 0
    assert (get_settings().workspaces_root / workspace_id / "README.md").exists()
    assert workspace_id not in runner.invoke(main, ["workspace", "list"]).output


def test_failures_exit_non_zero(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(main, ["workspace", "mirror", str(tmp_path / "missing")])
    assert result.exit_code == 1
    assert "Invalid folder selected" in result.output

    result = runner.invoke(main, ["workspace", "export", "ws_0_0000"])
    assert result.exit_code == 1
    assert "Workspace not found" in result.output


def test_url(runner: CliRunner, source_tree: Path, monkeypatch) -> None:
    workspace_id = _mirror(runner, source_tree)

    result = runner.invoke(main, ["workspace", "url", workspace_id])
    assert result.output.strip() == f"http://127.0.0.1:13337/?ws={workspace_id}"

    monkeypatch.setenv("CODEPOCKET_AUTH_TOKEN", "tok")
    _get_settings_cached.cache_clear()
    result = runner.invoke(main, ["workspace", "url", workspace_id])
    assert result.output.strip() == f"http://127.0.0.1:13337/?ws={workspace_id}&token=tok"


def test_serve(runner: CliRunner, monkeypatch) -> None:
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))

    result = runner.invoke(main, ["serve", "--port", "9000", "--generate-token"])
    assert result.exit_code == 0, result.output

    app, kwargs = calls[0]
    assert app == "codepocket.runtime.app:app"
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9000

    token = result.output.split("API token: ", 1)[1].strip()
    assert get_settings().resolve_auth_token() == token


def test_serve_refuses_open_network_bind(runner: CliRunner, monkeypatch) -> None:
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))

    result = runner.invoke(main, ["serve", "--host", "0.0.0.0"])  # noqa: S104
    assert result.exit_code == 2
    assert "without an API token" in result.output
    assert calls == []

    monkeypatch.setenv("CODEPOCKET_HOST", "192.168.1.20")
    _get_settings_cached.cache_clear()
    result = runner.invoke(main, ["serve"])
    assert result.exit_code == 2
    assert calls == []


def test_serve_network_bind_with_token(runner: CliRunner, monkeypatch) -> None:
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))

    result = runner.invoke(main, ["serve", "--host", "0.0.0.0", "--generate-token"])  # noqa: S104
    assert result.exit_code == 0, result.output
    assert calls[0][1]["host"] == "0.0.0.0"  # noqa: S104

    result = runner.invoke(main, ["serve", "--host", "localhost"])
    assert result.exit_code == 0, result.output
