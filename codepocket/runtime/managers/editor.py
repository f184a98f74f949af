"""Editor settings blob and plugin scripts.

Both live in the data root and are shared by all workspaces::

    {data_root}/settings.json
    {data_root}/plugins/*.js
"""

from __future__ import annotations

from functools import partial
from pathlib import Path

from anyio import to_thread

from codepocket.runtime.errors import ForbiddenError, NotFoundError

EMPTY_SETTINGS = b"{}"

# -- Settings ------------------------------------------------------------------


def _read_settings(settings_file: Path) -> bytes:
    try:
        return settings_file.read_bytes()
    except FileNotFoundError:
        return EMPTY_SETTINGS


def _write_settings(settings_file: Path, data: bytes) -> None:
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    settings_file.write_bytes(data)


async def read_settings(settings_file: Path) -> bytes:
    """Raw settings JSON, or ``{}`` if nothing was saved yet."""
    return await to_thread.run_sync(partial(_read_settings, settings_file))


async def write_settings(settings_file: Path, data: bytes) -> None:
    """Replace the settings blob verbatim."""
    await to_thread.run_sync(partial(_write_settings, settings_file, data))


# -- Plugins -------------------------------------------------------------------


def _list_plugins(plugins_dir: Path) -> list[str]:
    plugins_dir.mkdir(parents=True, exist_ok=True)
    return sorted(p.name for p in plugins_dir.iterdir() if p.suffix == ".js" and p.is_file())


def _read_plugin(plugins_dir: Path, name: str) -> str:
    if not name or "/" in name or "\\" in name or name in (".", ".."):
        msg = "Access denied"
        raise ForbiddenError(msg)
    path = plugins_dir / name
    if not path.is_file():
        msg = f"Plugin not found: {name}"
        raise NotFoundError(msg)
    return path.read_text(encoding="utf-8", errors="replace")


async def list_plugins(plugins_dir: Path) -> list[str]:
    """``*.js`` file names in the plugins directory (created lazily)."""
    return await to_thread.run_sync(partial(_list_plugins, plugins_dir))


async def read_plugin(plugins_dir: Path, name: str) -> str:
    return await to_thread.run_sync(partial(_read_plugin, plugins_dir, name))
