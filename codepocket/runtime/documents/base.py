"""Document tree capability used by the sync engine.

The external folder is only reachable through this interface: the engine
never turns ``Workspace.original_location`` into a filesystem path itself.
A provider resolves an opaque reference to the root node; nodes expose the
handful of operations mirroring and exporting need.
"""

from __future__ import annotations

from typing import BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class DocumentNode(Protocol):
    """A file or directory in the external document tree."""

    @property
    def name(self) -> str | None: ...

    @property
    def is_directory(self) -> bool: ...

    @property
    def length(self) -> int:
        """Size in bytes (0 for directories)."""
        ...

    def list_children(self) -> list[DocumentNode]:
        """Immediate children, in a stable order."""
        ...

    def open_read_stream(self) -> BinaryIO: ...

    def create_directory(self, name: str) -> DocumentNode | None:
        """Create a child directory.  ``None`` if the tree refused."""
        ...

    def create_file(self, mime_hint: str, name: str) -> DocumentNode | None:
        """Create an empty child file.  ``None`` if the tree refused."""
        ...

    def find_child_by_name(self, name: str) -> DocumentNode | None: ...

    def open_write_stream(self, *, truncate: bool = True) -> BinaryIO: ...


@runtime_checkable
class DocumentProvider(Protocol):
    """Resolves opaque references into document tree roots."""

    def open_tree(self, location: str) -> DocumentNode | None:
        """Return the node for *location*, or ``None`` if it no longer resolves."""
        ...
