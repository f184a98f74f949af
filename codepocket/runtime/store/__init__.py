"""Persistence: key-value preference slots and the workspace repository."""

from codepocket.runtime.store.base import KeyValueStore
from codepocket.runtime.store.local import LocalKeyValueStore
from codepocket.runtime.store.workspaces import WorkspaceStore

__all__ = ["KeyValueStore", "LocalKeyValueStore", "WorkspaceStore"]
