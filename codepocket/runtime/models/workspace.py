"""Workspace data model.

A workspace is a sandbox copy of an externally-owned folder.  The record
is persisted by ``WorkspaceStore``; the directory at ``sandbox_path`` is
owned by the record and removed with it, ``original_location`` never is.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(UTC)


class Workspace(BaseModel):
    """Persisted workspace record."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    original_location: str = Field(description="Opaque document-tree reference, e.g. a file:// URI.")
    sandbox_path: str
    file_count: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    last_synced_at: datetime = Field(default_factory=utc_now)
    last_edited_at: datetime = Field(default_factory=utc_now)

    @property
    def has_unsynced_changes(self) -> bool:
        """True when the sandbox was edited after the last sync."""
        return self.last_edited_at > self.last_synced_at

    def mark_synced(self, now: datetime | None = None) -> Workspace:
        return self.model_copy(update={"last_synced_at": now or utc_now()})

    def mark_edited(self, now: datetime | None = None) -> Workspace:
        return self.model_copy(update={"last_edited_at": now or utc_now()})
