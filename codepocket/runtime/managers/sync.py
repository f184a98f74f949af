"""Synchronization between an external document tree and the sandbox.

Mirror, export and refresh are generators of ``SyncEvent``: any number of
``SyncProgress`` events, then exactly one ``SyncCompleted`` or
``SyncFailed``.  Nothing raised inside an operation escapes it; every
failure is reported as ``SyncFailed``.  Operations process entries strictly
sequentially in depth-first order and are not cancellable.

Files copied into the sandbox by mirror and refresh are stamped with the
operation's start instant, which is also what ``last_synced_at`` is set to.
A freshly mirrored sandbox therefore has no file newer than the last sync,
and only later edits are picked up by export and change detection.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from loguru import logger

from codepocket.runtime.documents import DocumentNode, DocumentProvider
from codepocket.runtime.models.sync import SyncCompleted, SyncEvent, SyncFailed, SyncOutcome, SyncProgress
from codepocket.runtime.models.workspace import Workspace, utc_now
from codepocket.runtime.store.workspaces import WorkspaceStore

DEFAULT_MAX_FILE_SIZE = 50 * 1024 * 1024
COPY_CHUNK_SIZE = 8192
UNTITLED_WORKSPACE = "Untitled Workspace"

MIME_TYPES: dict[str, str] = {
    "txt": "text/plain",
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "application/javascript",
    "json": "application/json",
    "xml": "application/xml",
    "md": "text/markdown",
    "py": "text/x-python",
    "kt": "text/x-kotlin",
    "java": "text/x-java",
    "c": "text/x-c",
    "cpp": "text/x-c",
    "h": "text/x-c",
    "sh": "application/x-sh",
    "yaml": "text/yaml",
    "yml": "text/yaml",
}
DEFAULT_MIME_TYPE = "application/octet-stream"

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def mime_type_for(name: str) -> str:
    """MIME hint for a file created in the external tree, by extension."""
    _, dot, ext = name.rpartition(".")
    if not dot:
        return DEFAULT_MIME_TYPE
    return MIME_TYPES.get(ext.lower(), DEFAULT_MIME_TYPE)


# -- Timestamps ----------------------------------------------------------------
# Microsecond-exact conversions so a stamped mtime reads back equal to the
# datetime it was stamped from.


def datetime_to_ns(value: datetime) -> int:
    return (value - _EPOCH) // timedelta(microseconds=1) * 1000


def ns_to_datetime(ns: int) -> datetime:
    return _EPOCH + timedelta(microseconds=ns // 1000)


# -- Sandbox scanning ----------------------------------------------------------


def find_changed_files(sandbox_dir: Path, since: datetime) -> list[tuple[Path, datetime]]:
    """Return ``(path, mtime)`` for every file under *sandbox_dir* modified after *since*.

    Results are sorted by path.  ``OSError`` from the walk propagates.
    """

    def _raise(exc: OSError) -> None:
        raise exc

    changed: list[tuple[Path, datetime]] = []
    for dirpath, _dirnames, filenames in os.walk(sandbox_dir, onerror=_raise):
        for filename in filenames:
            path = Path(dirpath) / filename
            mtime = ns_to_datetime(path.stat().st_mtime_ns)
            if mtime > since:
                changed.append((path, mtime))
    changed.sort(key=lambda item: item[0])
    return changed


def drain(events: Iterable[SyncEvent]) -> SyncOutcome:
    """Consume a sync stream and return its terminal event."""
    outcome: SyncOutcome | None = None
    for event in events:
        if isinstance(event, (SyncCompleted, SyncFailed)):
            outcome = event
    if outcome is None:
        msg = "Sync stream ended without a terminal event"
        raise RuntimeError(msg)
    return outcome


# -- Engine --------------------------------------------------------------------


class SyncEngine:
    """Mirrors external trees into sandboxes and exports edits back."""

    def __init__(
        self,
        store: WorkspaceStore,
        provider: DocumentProvider,
        *,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ) -> None:
        self._store = store
        self._provider = provider
        self._max_file_size = max_file_size

    @property
    def store(self) -> WorkspaceStore:
        return self._store

    # -- Mirror ----------------------------------------------------------------

    def mirror_to_sandbox(self, source_ref: str) -> Iterator[SyncEvent]:
        """Copy the tree at *source_ref* into a new sandbox and persist a workspace."""
        started_at = utc_now()
        try:
            source = self._provider.open_tree(source_ref)
            if source is None or not source.is_directory:
                yield SyncFailed("Invalid folder selected")
                return

            workspace_id = self._store.generate_id()
            sandbox_dir = self._store.sandbox_dir_for(workspace_id)
            sandbox_dir.mkdir(parents=True, exist_ok=True)
            logger.info("Mirroring {} into {}", source_ref, sandbox_dir)

            count = yield from self._copy_tree(source, sandbox_dir, started_at)

            workspace = Workspace(
                id=workspace_id,
                name=source.name or UNTITLED_WORKSPACE,
                original_location=source_ref,
                sandbox_path=str(sandbox_dir),
                file_count=count,
                created_at=started_at,
                last_synced_at=started_at,
                last_edited_at=started_at,
            )
            self._store.save(workspace)
        except Exception as exc:
            logger.exception("Mirror failed for {}", source_ref)
            yield SyncFailed(f"Mirror failed: {exc}")
            return

        logger.info("Mirrored {} entries into workspace {}", count, workspace.id)
        yield SyncCompleted(workspace, count)

    # -- Export ----------------------------------------------------------------

    def export_to_original(self, workspace: Workspace) -> Iterator[SyncEvent]:
        """Write every sandbox file edited since the last sync back to the external tree."""
        try:
            original = self._provider.open_tree(workspace.original_location)
            if original is None or not original.is_directory:
                yield SyncFailed("Original folder no longer accessible")
                return

            sandbox_dir = Path(workspace.sandbox_path)
            if not sandbox_dir.is_dir():
                yield SyncFailed("Sandbox directory not found")
                return

            changed = find_changed_files(sandbox_dir, workspace.last_synced_at)
            total = len(changed)
            logger.info("Exporting {} changed files from workspace {}", total, workspace.id)

            for index, (path, _mtime) in enumerate(changed, start=1):
                relative = PurePosixPath(path.relative_to(sandbox_dir).as_posix())
                _export_file(path, relative, original)
                yield SyncProgress(index, total, str(relative))

            updated = workspace.mark_synced(utc_now())
            self._store.save(updated)
        except Exception as exc:
            logger.exception("Export failed for workspace {}", workspace.id)
            yield SyncFailed(f"Export failed: {exc}")
            return

        yield SyncCompleted(updated, total)

    def export_count(self, workspace: Workspace) -> int:
        """Blocking export.  Returns the number of exported files, or ``-1`` on failure."""
        outcome = drain(self.export_to_original(workspace))
        if isinstance(outcome, SyncCompleted):
            return outcome.count
        return -1

    # -- Refresh ---------------------------------------------------------------

    def refresh_from_original(self, workspace: Workspace) -> Iterator[SyncEvent]:
        """Discard the sandbox and mirror the external tree again into the same directory."""
        started_at = utc_now()
        try:
            original = self._provider.open_tree(workspace.original_location)
            if original is None or not original.is_directory:
                yield SyncFailed("Original folder no longer accessible")
                return

            sandbox_dir = Path(workspace.sandbox_path)
            if sandbox_dir.exists():
                shutil.rmtree(sandbox_dir)
            sandbox_dir.mkdir(parents=True)
            logger.info("Refreshing workspace {} from {}", workspace.id, workspace.original_location)

            count = yield from self._copy_tree(original, sandbox_dir, started_at)

            updated = workspace.model_copy(update={"file_count": count, "last_synced_at": started_at})
            self._store.save(updated)
        except Exception as exc:
            logger.exception("Refresh failed for workspace {}", workspace.id)
            yield SyncFailed(f"Refresh failed: {exc}")
            return

        yield SyncCompleted(updated, count)

    # -- Change detection ------------------------------------------------------

    def check_unsynced_changes(self, workspace: Workspace) -> Workspace:
        """Advance ``last_edited_at`` to the newest sandbox edit since the last sync.

        Returns the (possibly updated and persisted) workspace.  A missing
        sandbox or a scan error leaves the workspace unchanged.
        """
        sandbox_dir = Path(workspace.sandbox_path)
        if not sandbox_dir.is_dir():
            return workspace

        try:
            changed = find_changed_files(sandbox_dir, workspace.last_synced_at)
        except OSError:
            logger.exception("Error checking changes for workspace {}", workspace.id)
            return workspace

        if not changed:
            return workspace

        latest = max(mtime for _path, mtime in changed)
        if latest <= workspace.last_edited_at:
            return workspace

        updated = workspace.mark_edited(latest)
        self._store.save(updated)
        logger.debug("Workspace {} edited at {}", workspace.id, latest)
        return updated

    # -- Internals -------------------------------------------------------------

    def _copy_tree(self, source: DocumentNode, target_dir: Path, stamp: datetime) -> Iterator[SyncEvent]:
        """Copy *source* into *target_dir*, yielding progress.  Returns the entry count."""
        entries = list(self._enumerate(source, PurePosixPath()))
        total = len(entries)
        stamp_ns = datetime_to_ns(stamp)

        for index, (node, relative) in enumerate(entries, start=1):
            destination = target_dir.joinpath(*relative.parts)
            if node.is_directory:
                destination.mkdir(parents=True, exist_ok=True)
            else:
                destination.parent.mkdir(parents=True, exist_ok=True)
                with node.open_read_stream() as src, destination.open("wb") as dst:
                    _copy_stream(src, dst)
                os.utime(destination, ns=(stamp_ns, stamp_ns))
            yield SyncProgress(index, total, str(relative))

        return total

    def _enumerate(self, node: DocumentNode, prefix: PurePosixPath) -> Iterator[tuple[DocumentNode, PurePosixPath]]:
        """Depth-first pre-order walk.  Oversized files are skipped."""
        for child in node.list_children():
            if not child.name:
                continue
            relative = prefix / child.name
            if child.is_directory:
                yield child, relative
                yield from self._enumerate(child, relative)
            elif child.length > self._max_file_size:
                logger.warning("Skipping large file: {} ({} bytes)", relative, child.length)
            else:
                yield child, relative


def _export_file(path: Path, relative: PurePosixPath, root: DocumentNode) -> None:
    """Copy one sandbox file to the same relative location under *root*."""
    parent = root
    for part in relative.parts[:-1]:
        child = parent.find_child_by_name(part)
        if child is None or not child.is_directory:
            child = parent.create_directory(part)
            if child is None:
                msg = f"Cannot create directory: {part}"
                raise OSError(msg)
        parent = child

    name = relative.name
    target = parent.find_child_by_name(name)
    if target is None:
        target = parent.create_file(mime_type_for(name), name)
        if target is None:
            msg = f"Cannot create file: {name}"
            raise OSError(msg)

    with path.open("rb") as src, target.open_write_stream(truncate=True) as dst:
        _copy_stream(src, dst)


def _copy_stream(src: BinaryIO, dst: BinaryIO) -> None:
    shutil.copyfileobj(src, dst, COPY_CHUNK_SIZE)
