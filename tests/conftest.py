"""Shared test fixtures.

Every test runs with its own data root under ``tmp_path`` and no auth
token, so nothing touches the developer's real data directory or ``.env``.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from codepocket.runtime.settings import _get_settings_cached


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch) -> Iterator[None]:
    """Point ``get_settings()`` at a fresh data root and invalidate its cache."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CODEPOCKET_DATA_ROOT", str(tmp_path / "data"))
    monkeypatch.delenv("CODEPOCKET_AUTH_TOKEN", raising=False)
    _get_settings_cached.cache_clear()
    yield
    _get_settings_cached.cache_clear()
