"""Key-value store interface for small persisted preference slots.

Each store instance is one named preferences file holding string values
under string keys.  Callers serialize their own payloads (``WorkspaceStore``
keeps a whole JSON array in a single slot) and always read or write a slot
as a whole.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Synchronous protocol for reading and writing preference slots."""

    def get(self, key: str) -> str | None:
        """Return the slot value, or ``None`` if the slot was never written."""
        ...

    def put(self, key: str, value: str) -> None:
        """Replace the slot value."""
        ...

    def remove(self, key: str) -> None:
        """Delete the slot.  No-op if absent."""
        ...
