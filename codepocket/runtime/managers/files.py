"""Sandboxed file access for the editor.

Every request names a workspace (``ws``) and a workspace-relative path.
``resolve_sandboxed_path`` turns the pair into an absolute path and refuses
anything that resolves outside the workspace directory, symlinks included.
Blocking filesystem work runs in the anyio worker pool.
"""

from __future__ import annotations

import errno
import os
import stat as stat_module
from functools import partial
from pathlib import Path

from anyio import to_thread
from loguru import logger

from codepocket.runtime.errors import ForbiddenError, NotFoundError
from codepocket.runtime.models.api import FileEntry, StatInfo
from codepocket.runtime.models.enums import EntryType

# -- Path resolution -----------------------------------------------------------


def resolve_workspace_root(workspaces_root: str | Path, ws: str) -> str:
    """Absolute, symlink-resolved directory of workspace *ws*.

    Raises ``ForbiddenError`` for ids that are empty or could address
    anything other than a direct child of *workspaces_root*.
    """
    if not ws or ws in (".", "..") or "/" in ws or "\\" in ws or "\x00" in ws:
        msg = "Access denied"
        raise ForbiddenError(msg)
    return os.path.realpath(os.path.join(workspaces_root, ws))


def resolve_sandboxed_path(workspaces_root: str | Path, ws: str, path: str) -> str:
    """Resolve *path* inside workspace *ws*.

    The result is fully resolved and either equals the workspace root or
    lies below it.  Raises ``ForbiddenError`` otherwise.
    """
    root = resolve_workspace_root(workspaces_root, ws)
    if "\x00" in path:
        msg = "Access denied"
        raise ForbiddenError(msg)
    target = os.path.realpath(os.path.join(root, path.lstrip("/\\")))
    if target != root and not target.startswith(root + os.sep):
        logger.warning("Rejected path outside sandbox: ws={} path={}", ws, path)
        msg = "Access denied"
        raise ForbiddenError(msg)
    return target


# -- Blocking implementations --------------------------------------------------


def _list_workspaces(workspaces_root: Path) -> list[str]:
    workspaces_root.mkdir(parents=True, exist_ok=True)
    return sorted(entry.name for entry in os.scandir(workspaces_root) if entry.is_dir())


def _stat(target: str) -> StatInfo:
    try:
        st = os.stat(target)
    except FileNotFoundError:
        raise NotFoundError("Not found") from None
    return StatInfo(
        size=st.st_size,
        mtime_ms=st.st_mtime * 1000,
        ctime_ms=st.st_ctime * 1000,
        type=EntryType.DIRECTORY if stat_module.S_ISDIR(st.st_mode) else EntryType.FILE,
        mode=st.st_mode,
    )


def _read_dir(target: str) -> list[str]:
    try:
        return os.listdir(target)
    except FileNotFoundError:
        raise NotFoundError("Not found") from None


def _build_tree(directory: Path, root: Path) -> list[FileEntry]:
    entries: list[FileEntry] = []
    for child in sorted(directory.iterdir(), key=lambda p: p.name):
        relative = child.relative_to(root).as_posix()
        if child.is_dir():
            entries.append(
                FileEntry(
                    name=child.name,
                    path=relative,
                    type=EntryType.DIRECTORY,
                    children=_build_tree(child, root),
                )
            )
        else:
            entries.append(FileEntry(name=child.name, path=relative, type=EntryType.FILE, size=child.stat().st_size))
    return entries


def _tree(root: str) -> list[FileEntry]:
    root_path = Path(root)
    if not root_path.is_dir():
        raise NotFoundError("Workspace not found")
    return _build_tree(root_path, root_path)


def _read_text(target: str) -> str:
    try:
        with open(target, encoding="utf-8", errors="replace") as f:
            return f.read()
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        raise NotFoundError("File not found") from None


def _write_bytes(target: str, data: bytes) -> None:
    os.makedirs(os.path.dirname(target), exist_ok=True)
    with open(target, "wb") as f:
        f.write(data)


def _make_dir(target: str) -> None:
    os.makedirs(target, exist_ok=True)


def _unlink(target: str) -> None:
    try:
        os.unlink(target)
    except FileNotFoundError:
        pass


def _remove_dir(target: str) -> None:
    try:
        os.rmdir(target)
    except OSError as exc:
        if exc.errno != errno.ENOENT:
            raise


# -- Async API -----------------------------------------------------------------


async def list_workspaces(workspaces_root: Path) -> list[str]:
    """Names of workspace directories (the root is created lazily)."""
    return await to_thread.run_sync(partial(_list_workspaces, workspaces_root))


async def stat_path(workspaces_root: Path, ws: str, path: str) -> StatInfo:
    target = resolve_sandboxed_path(workspaces_root, ws, path)
    return await to_thread.run_sync(partial(_stat, target))


async def read_dir(workspaces_root: Path, ws: str, path: str) -> list[str]:
    target = resolve_sandboxed_path(workspaces_root, ws, path)
    return await to_thread.run_sync(partial(_read_dir, target))


async def build_tree(workspaces_root: Path, ws: str) -> list[FileEntry]:
    """Recursive listing of a workspace, children sorted by name."""
    root = resolve_workspace_root(workspaces_root, ws)
    return await to_thread.run_sync(partial(_tree, root))


async def read_text(workspaces_root: Path, ws: str, path: str) -> str:
    target = resolve_sandboxed_path(workspaces_root, ws, path)
    return await to_thread.run_sync(partial(_read_text, target))


async def write_bytes(workspaces_root: Path, ws: str, path: str, data: bytes) -> None:
    """Create parent directories and overwrite the file with *data*."""
    target = resolve_sandboxed_path(workspaces_root, ws, path)
    await to_thread.run_sync(partial(_write_bytes, target, data))


async def make_dir(workspaces_root: Path, ws: str, path: str) -> None:
    target = resolve_sandboxed_path(workspaces_root, ws, path)
    await to_thread.run_sync(partial(_make_dir, target))


async def unlink(workspaces_root: Path, ws: str, path: str) -> None:
    """Remove a file.  Already absent is success."""
    target = resolve_sandboxed_path(workspaces_root, ws, path)
    await to_thread.run_sync(partial(_unlink, target))


async def remove_dir(workspaces_root: Path, ws: str, path: str) -> None:
    """Remove an empty directory.  Already absent is success."""
    target = resolve_sandboxed_path(workspaces_root, ws, path)
    await to_thread.run_sync(partial(_remove_dir, target))
