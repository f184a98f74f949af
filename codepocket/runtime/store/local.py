"""Local filesystem key-value store.

All slots of one preferences name live in a single JSON object file::

    {prefs_dir}/{name}.json

Writes are atomic: the whole object is written to a temporary file in the
same directory, then renamed over the target.  A lock serializes the
read-modify-write cycle between threads of this process; separate
processes writing the same file are last-writer-wins.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
import threading
from pathlib import Path


class LocalKeyValueStore:
    """Local filesystem implementation of the KeyValueStore protocol."""

    def __init__(self, prefs_dir: str | Path, name: str) -> None:
        self._path = Path(prefs_dir) / f"{name}.json"
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # -- Read ------------------------------------------------------------------

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    # -- Write -----------------------------------------------------------------

    def put(self, key: str, value: str) -> None:
        with self._lock:
            slots = self._load()
            slots[key] = value
            _atomic_write(self._path, json.dumps(slots, indent=2))

    def remove(self, key: str) -> None:
        with self._lock:
            slots = self._load()
            if slots.pop(key, None) is not None:
                _atomic_write(self._path, json.dumps(slots, indent=2))

    # -- Internals -------------------------------------------------------------

    def _load(self) -> dict[str, object]:
        """Read every slot.  A missing file is an empty store.

        Raises ``ValueError`` if the file is not a JSON object.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        data = json.loads(raw)
        if not isinstance(data, dict):
            msg = f"Preferences file {self._path} does not contain a JSON object"
            raise ValueError(msg)  # noqa: TRY004
        return data


def _atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp file + rename.

    Ensures readers never see a partially-written file.  The temp file is
    created in the same directory so ``os.replace`` is atomic on POSIX.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up temp file on any failure.
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
