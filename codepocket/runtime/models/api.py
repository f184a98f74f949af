"""API request / response schemas for the editor-facing endpoints.

Field names follow what the browser editor already consumes (``mtimeMs``,
``ctimeMs`` ...), so a few fields carry wire aliases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from codepocket.runtime.models.enums import EntryType

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str = "ok"
    uptime: int = Field(description="Seconds since the runtime was initialised.")


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class StatInfo(BaseModel):
    """Metadata for a single sandbox path."""

    model_config = ConfigDict(populate_by_name=True)

    size: int
    mtime_ms: float = Field(alias="mtimeMs")
    ctime_ms: float = Field(alias="ctimeMs")
    type: EntryType
    mode: int


class FileEntry(BaseModel):
    """Node of the recursive workspace tree.

    ``size`` is only set for files and ``children`` only for directories;
    routes serialise with ``exclude_none`` so the other key is omitted.
    """

    name: str
    path: str = Field(description="Workspace-relative, forward-slash separated.")
    type: EntryType
    size: int | None = None
    children: list[FileEntry] | None = None


class FileTreeResponse(BaseModel):
    files: list[FileEntry]


class DirListing(BaseModel):
    files: list[str]


class WorkspaceListResponse(BaseModel):
    workspaces: list[str]


class SuccessResponse(BaseModel):
    success: bool = True


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class SearchMatch(BaseModel):
    file: str
    line: int = Field(description="1-based line number.")
    text: str = Field(description="Trimmed line, at most 80 characters.")


# ---------------------------------------------------------------------------
# Plugins
# ---------------------------------------------------------------------------


class PluginListResponse(BaseModel):
    plugins: list[str]


# ---------------------------------------------------------------------------
# Terminals
# ---------------------------------------------------------------------------


class TerminalCreate(BaseModel):
    cwd: str | None = None


class TerminalCreated(BaseModel):
    id: str


class TerminalOutput(BaseModel):
    output: str
