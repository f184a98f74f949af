"""Long-lived runtime handle and the host it reports to.

``CodePocketRuntime`` owns everything the server and the CLI share: the
workspace store, the sync engine, the terminal sessions, the auth token and
the process status.  It replaces process-wide flags with an object that has
explicit ``initialize`` / ``shutdown`` transitions.

The host (whatever keeps the process alive and shows its status to the
user) is reached only through ``HostBridge``.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

from loguru import logger

from codepocket.runtime.documents import DocumentProvider, LocalDocumentProvider
from codepocket.runtime.managers.sync import SyncEngine
from codepocket.runtime.managers.terminals import TerminalSessionManager
from codepocket.runtime.models.enums import RuntimeState
from codepocket.runtime.settings import CodePocketSettings
from codepocket.runtime.store.local import LocalKeyValueStore
from codepocket.runtime.store.workspaces import PREFS_NAME, WorkspaceStore


@runtime_checkable
class HostBridge(Protocol):
    """What the runtime needs from its host process."""

    def keep_alive(self, enabled: bool) -> None:  # noqa: FBT001
        """Ask the host to keep the process running (or allow it to stop)."""
        ...

    def publish_status(self, message: str) -> None:
        """Show a short human-readable status line to the user."""
        ...


class LoggingHostBridge:
    """Default host: status changes go to the log."""

    def keep_alive(self, enabled: bool) -> None:  # noqa: FBT001
        logger.debug("Host keep-alive: {}", "on" if enabled else "off")

    def publish_status(self, message: str) -> None:
        logger.info("Status: {}", message)


class CodePocketRuntime:
    """Owns the stores, engines and sessions of one server process."""

    def __init__(
        self,
        settings: CodePocketSettings,
        *,
        host: HostBridge | None = None,
        provider: DocumentProvider | None = None,
    ) -> None:
        self.settings = settings
        self._host = host or LoggingHostBridge()
        self._state = RuntimeState.CREATED
        self._status = "Stopped"
        self._started_at = time.monotonic()
        self._auth_token = settings.resolve_auth_token()

        self.workspaces = WorkspaceStore(
            LocalKeyValueStore(settings.prefs_dir, PREFS_NAME),
            settings.workspaces_root,
        )
        self.sync = SyncEngine(
            self.workspaces,
            provider or LocalDocumentProvider(),
            max_file_size=settings.max_mirror_file_size,
        )
        self.terminals = TerminalSessionManager(
            settings.workspaces_root,
            shell=settings.terminal_shell,
            buffer_limit=settings.terminal_buffer_limit,
        )

    # -- Lifecycle -------------------------------------------------------------

    def initialize(self) -> CodePocketRuntime:
        """Create the data directories and report the runtime as running."""
        for directory in (
            self.settings.data_path,
            self.settings.workspaces_root,
            self.settings.prefs_dir,
            self.settings.plugins_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)

        self._started_at = time.monotonic()
        self._state = RuntimeState.RUNNING
        self._host.keep_alive(True)
        self._set_status(f"Running on http://{self.settings.host}:{self.settings.port}")
        logger.info("Data root: {}", self.settings.data_path.resolve())
        if self._auth_token:
            logger.info("API token required for /api requests")
        else:
            logger.warning("No auth token configured -- API is open to any local client")
        return self

    async def shutdown(self) -> None:
        """Stop terminal sessions and release the host."""
        if self._state is RuntimeState.STOPPED:
            return
        await self.terminals.shutdown()
        self._host.keep_alive(False)
        self._state = RuntimeState.STOPPED
        self._set_status("Stopped")

    # -- Query -----------------------------------------------------------------

    @property
    def state(self) -> RuntimeState:
        return self._state

    @property
    def status(self) -> str:
        return self._status

    @property
    def auth_token(self) -> str | None:
        return self._auth_token

    @property
    def uptime_seconds(self) -> int:
        return int(time.monotonic() - self._started_at)

    # -- Internals -------------------------------------------------------------

    def _set_status(self, message: str) -> None:
        self._status = message
        self._host.publish_status(message)
