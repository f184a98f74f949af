"""Sync operation events.

Mirror, export and refresh are exposed as lazy streams of these events:
any number of ``SyncProgress`` followed by exactly one terminal
``SyncCompleted`` or ``SyncFailed``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from codepocket.runtime.models.workspace import Workspace


@dataclass(frozen=True)
class SyncProgress:
    """One entry processed (1-based ``current`` out of ``total``)."""

    current: int
    total: int
    path: str


@dataclass(frozen=True)
class SyncCompleted:
    """Terminal success: the persisted workspace and the number of entries handled."""

    workspace: Workspace
    count: int


@dataclass(frozen=True)
class SyncFailed:
    """Terminal failure with a human-readable message."""

    message: str


SyncOutcome: TypeAlias = SyncCompleted | SyncFailed
SyncEvent: TypeAlias = SyncProgress | SyncCompleted | SyncFailed
