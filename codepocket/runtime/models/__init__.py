"""Data models for the runtime."""

from codepocket.runtime.models.api import (
    DirListing,
    FileEntry,
    FileTreeResponse,
    HealthResponse,
    PluginListResponse,
    SearchMatch,
    StatInfo,
    SuccessResponse,
    TerminalCreate,
    TerminalCreated,
    TerminalOutput,
    WorkspaceListResponse,
)
from codepocket.runtime.models.enums import EntryType, RuntimeState
from codepocket.runtime.models.sync import (
    SyncCompleted,
    SyncEvent,
    SyncFailed,
    SyncOutcome,
    SyncProgress,
)
from codepocket.runtime.models.workspace import Workspace, utc_now

__all__ = [
    # API schemas
    "DirListing",
    # Enums
    "EntryType",
    "FileEntry",
    "FileTreeResponse",
    "HealthResponse",
    "PluginListResponse",
    "RuntimeState",
    "SearchMatch",
    "StatInfo",
    "SuccessResponse",
    # Sync events
    "SyncCompleted",
    "SyncEvent",
    "SyncFailed",
    "SyncOutcome",
    "SyncProgress",
    "TerminalCreate",
    "TerminalCreated",
    "TerminalOutput",
    # Workspace
    "Workspace",
    "WorkspaceListResponse",
    "utc_now",
]
