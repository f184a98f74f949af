"""Literal substring search across a workspace."""

from __future__ import annotations

import os
from functools import partial
from pathlib import Path

from anyio import to_thread
from loguru import logger

from codepocket.runtime.errors import ForbiddenError
from codepocket.runtime.managers.files import resolve_workspace_root
from codepocket.runtime.models.api import SearchMatch

MAX_RESULTS = 200
MAX_FILE_SIZE = 500_000
MAX_TEXT_LENGTH = 80
IGNORED_NAMES = frozenset({".git", "node_modules", "dist", "build", ".DS_Store"})


def search_workspace(workspaces_root: str | Path, ws: str, query: str) -> list[SearchMatch]:
    """Return up to ``MAX_RESULTS`` matches of *query*, walking the workspace depth-first.

    Files of ``MAX_FILE_SIZE`` bytes or more are skipped, as are the entries
    in ``IGNORED_NAMES``.  Unreadable entries are skipped.  An empty query or
    an unknown workspace yields no results.
    """
    if not query:
        return []
    try:
        root = resolve_workspace_root(workspaces_root, ws)
    except ForbiddenError:
        return []
    if not os.path.isdir(root):
        return []

    results: list[SearchMatch] = []
    _search_dir(root, root, query, results)
    return results


def _search_dir(directory: str, root: str, query: str, results: list[SearchMatch]) -> None:
    try:
        names = sorted(os.listdir(directory))
    except OSError as exc:
        logger.debug("Skipping unreadable directory {}: {}", directory, exc)
        return

    for name in names:
        if len(results) >= MAX_RESULTS:
            return
        if name in IGNORED_NAMES:
            continue
        full_path = os.path.join(directory, name)
        try:
            if os.path.isdir(full_path):
                if not os.path.islink(full_path):
                    _search_dir(full_path, root, query, results)
            elif os.path.getsize(full_path) < MAX_FILE_SIZE:
                _search_file(full_path, root, query, results)
        except OSError as exc:
            logger.debug("Skipping unreadable entry {}: {}", full_path, exc)


def _search_file(path: str, root: str, query: str, results: list[SearchMatch]) -> None:
    with open(path, encoding="utf-8", errors="replace") as f:
        content = f.read()
    relative = os.path.relpath(path, root).replace(os.sep, "/")
    for number, line in enumerate(content.split("\n"), start=1):
        if query in line:
            results.append(SearchMatch(file=relative, line=number, text=line.strip()[:MAX_TEXT_LENGTH]))
            if len(results) >= MAX_RESULTS:
                return


async def search(workspaces_root: Path, ws: str, query: str) -> list[SearchMatch]:
    return await to_thread.run_sync(partial(search_workspace, workspaces_root, ws, query))
