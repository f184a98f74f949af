"""External document tree capability and its local-filesystem implementation."""

from codepocket.runtime.documents.base import DocumentNode, DocumentProvider
from codepocket.runtime.documents.local import LocalDocument, LocalDocumentProvider, location_to_path, to_location

__all__ = [
    "DocumentNode",
    "DocumentProvider",
    "LocalDocument",
    "LocalDocumentProvider",
    "location_to_path",
    "to_location",
]
