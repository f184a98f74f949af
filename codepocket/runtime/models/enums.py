"""Shared enumerations used across the runtime."""

from __future__ import annotations

from enum import StrEnum

# -- Filesystem --------------------------------------------------------------


class EntryType(StrEnum):
    """Kind of a sandbox entry as reported to the editor."""

    FILE = "file"
    DIRECTORY = "directory"


# -- Runtime -----------------------------------------------------------------


class RuntimeState(StrEnum):
    """Lifecycle of the long-lived runtime handle."""

    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"
