"""Document tree backed by an ordinary local directory.

References are ``file://`` URIs (canonical form, see ``to_location``) or
plain paths.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO
from urllib.parse import urlparse
from urllib.request import url2pathname


class LocalDocument:
    """``DocumentNode`` implementation over a ``Path``."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def __repr__(self) -> str:
        return f"LocalDocument({str(self._path)!r})"

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str | None:
        return self._path.name or None

    @property
    def is_directory(self) -> bool:
        return self._path.is_dir()

    @property
    def length(self) -> int:
        if self._path.is_file():
            return self._path.stat().st_size
        return 0

    def list_children(self) -> list[LocalDocument]:
        return [LocalDocument(child) for child in sorted(self._path.iterdir(), key=lambda p: p.name)]

    def open_read_stream(self) -> BinaryIO:
        return self._path.open("rb")

    def create_directory(self, name: str) -> LocalDocument:
        child = self._child(name)
        child.mkdir()
        return LocalDocument(child)

    def create_file(self, mime_hint: str, name: str) -> LocalDocument:  # noqa: ARG002
        child = self._child(name)
        child.touch(exist_ok=False)
        return LocalDocument(child)

    def find_child_by_name(self, name: str) -> LocalDocument | None:
        child = self._child(name)
        return LocalDocument(child) if child.exists() else None

    def open_write_stream(self, *, truncate: bool = True) -> BinaryIO:
        return self._path.open("wb" if truncate else "r+b")

    def _child(self, name: str) -> Path:
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            msg = f"Invalid document name: {name!r}"
            raise ValueError(msg)
        return self._path / name


class LocalDocumentProvider:
    """``DocumentProvider`` for ``file://`` URIs and plain paths."""

    def open_tree(self, location: str) -> LocalDocument | None:
        path = location_to_path(location)
        if path is None or not path.exists():
            return None
        return LocalDocument(path)


def location_to_path(location: str) -> Path | None:
    """Translate a ``file://`` URI or plain path into a ``Path``."""
    if not location:
        return None
    parsed = urlparse(location)
    if parsed.scheme == "file":
        return Path(url2pathname(parsed.path))
    if parsed.scheme and len(parsed.scheme) > 1:
        # Some other provider's reference (content://, s3://, ...).
        return None
    return Path(location).expanduser()


def to_location(path: str | Path) -> str:
    """Canonical reference for a local directory: its absolute ``file://`` URI."""
    return Path(path).expanduser().resolve().as_uri()
