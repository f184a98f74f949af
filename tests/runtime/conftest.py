"""Shared fixtures for runtime tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from codepocket.runtime.app import app
from codepocket.runtime.host import CodePocketRuntime
from codepocket.runtime.settings import CodePocketSettings


@pytest.fixture
def settings(tmp_path: Path) -> CodePocketSettings:
    return CodePocketSettings(data_root=str(tmp_path / "data"))


@pytest.fixture
async def runtime(settings: CodePocketSettings) -> AsyncIterator[CodePocketRuntime]:
    rt = CodePocketRuntime(settings).initialize()
    yield rt
    await rt.shutdown()


@pytest.fixture
async def client(runtime: CodePocketRuntime) -> AsyncIterator[AsyncClient]:
    """Async HTTP client wired to the app.

    The app lifespan does NOT run under ``ASGITransport``, so the runtime
    is pre-set on ``app.state``.
    """
    app.state.runtime = runtime
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.state.runtime = None


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """An external folder with 3 directories and 3 files::

    README.md
    docs/
    src/
    src/main.py
    src/util/
    src/util/helpers.py
    """
    root = tmp_path / "source"
    (root / "docs").mkdir(parents=True)
    (root / "src" / "util").mkdir(parents=True)
    (root / "README.md").write_text("# Project\n")
    (root / "src" / "main.py").write_text("print('hello')\n")
    (root / "src" / "util" / "helpers.py").write_text("def helper():\n    return 42\n")
    return root


@pytest.fixture
def sandbox(settings: CodePocketSettings) -> Path:
    """An existing workspace directory ``abc`` in the sandbox root."""
    root = settings.workspaces_root / "abc"
    root.mkdir(parents=True)
    return root
