"""Workspace metadata persistence.

The whole workspace collection is one JSON array stored in a single slot of
the ``codepocket_workspaces`` preferences file.  Every mutation reads the
full list, changes it in memory and writes the full list back; there are no
partial updates.  Safe for a single-process, effectively single-writer
deployment only.
"""

from __future__ import annotations

import random
import shutil
import threading
import time
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from codepocket.runtime.models.workspace import Workspace
from codepocket.runtime.store.base import KeyValueStore

PREFS_NAME = "codepocket_workspaces"
KEY_WORKSPACES = "workspaces_json"

_WORKSPACE_LIST = TypeAdapter(list[Workspace])


class WorkspaceStore:
    """Repository of ``Workspace`` records plus the sandbox directory layout.

    Layout::

        {sandbox_root}/{workspace_id}/
    """

    def __init__(self, kv: KeyValueStore, sandbox_root: str | Path) -> None:
        self._kv = kv
        self._sandbox_root = Path(sandbox_root)
        self._sandbox_root.mkdir(parents=True, exist_ok=True)
        self._issued_ids: set[str] = set()
        self._id_lock = threading.Lock()

    @property
    def sandbox_root(self) -> Path:
        return self._sandbox_root

    # -- Query -----------------------------------------------------------------

    def list_all(self) -> list[Workspace]:
        """Return every saved workspace.  A corrupt slot reads as empty."""
        raw = None
        try:
            raw = self._kv.get(KEY_WORKSPACES)
            if raw is None:
                return []
            return _WORKSPACE_LIST.validate_json(raw)
        except (ValueError, ValidationError):
            logger.exception("Error parsing workspaces (slot length={})", len(raw) if raw else 0)
            return []

    def get(self, workspace_id: str) -> Workspace | None:
        return next((w for w in self.list_all() if w.id == workspace_id), None)

    def get_by_original_location(self, location: str) -> Workspace | None:
        return next((w for w in self.list_all() if w.original_location == location), None)

    # -- Mutation --------------------------------------------------------------

    def save(self, workspace: Workspace) -> None:
        """Replace the record with the same id, or append a new one."""
        workspaces = self.list_all()
        for index, existing in enumerate(workspaces):
            if existing.id == workspace.id:
                workspaces[index] = workspace
                break
        else:
            workspaces.append(workspace)

        self._save_all(workspaces)
        logger.debug("Saved workspace: {} ({})", workspace.name, workspace.id)

    def delete(self, workspace_id: str) -> None:
        """Remove the record only; sandbox files stay on disk."""
        workspaces = [w for w in self.list_all() if w.id != workspace_id]
        self._save_all(workspaces)
        logger.debug("Deleted workspace: {}", workspace_id)

    def delete_with_files(self, workspace_id: str) -> bool:
        """Remove the record and its sandbox directory.  ``False`` if unknown."""
        workspace = self.get(workspace_id)
        if workspace is None:
            return False

        sandbox_dir = Path(workspace.sandbox_path)
        if sandbox_dir.exists():
            shutil.rmtree(sandbox_dir)

        self.delete(workspace_id)
        logger.info("Deleted workspace with files: {}", workspace.name)
        return True

    # -- Identity & layout -----------------------------------------------------

    def generate_id(self) -> str:
        """Return a new ``ws_<millis>_<rand>`` id never issued by this process."""
        with self._id_lock:
            while True:
                candidate = f"ws_{time.time_ns() // 1_000_000}_{random.randint(1000, 9999)}"  # noqa: S311
                if candidate not in self._issued_ids:
                    self._issued_ids.add(candidate)
                    return candidate

    def sandbox_dir_for(self, workspace_id: str) -> Path:
        return self._sandbox_root / workspace_id

    # -- Internals -------------------------------------------------------------

    def _save_all(self, workspaces: list[Workspace]) -> None:
        self._kv.put(KEY_WORKSPACES, _WORKSPACE_LIST.dump_json(workspaces).decode("utf-8"))
