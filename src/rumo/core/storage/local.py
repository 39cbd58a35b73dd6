"""
Local filesystem key-value store.

Each key is one ``<key>.json`` file under ``base_path``. Writes go to a
temporary sibling first and are moved into place, so a reader never sees
a half-written blob.
"""

import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from loguru import logger

from .base import KeyValueStore, StoragePermissionError

_SUFFIX = ".json"


class LocalKeyValueStore(KeyValueStore):
    """Directory-of-files store."""

    def __init__(self, base_path: str = "~/.rumo-data", **config):
        super().__init__(**config)
        self.base_path = Path(base_path).expanduser().resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, key: str) -> Path:
        """Resolve a storage key to an absolute path under ``base_path``.

        Rejects unsafe keys (absolute paths, traversal, empty keys, and
        separators) to prevent writes outside ``base_path``.
        """
        raw_key = key.strip()
        if not raw_key:
            raise StoragePermissionError("Storage key cannot be empty.")
        if "\x00" in raw_key:
            raise StoragePermissionError("Storage key cannot contain null bytes.")
        if "/" in raw_key or "\\" in raw_key:
            raise StoragePermissionError(f"Unsafe storage key '{key}': path separators are not allowed.")
        if raw_key.startswith((".", "~")):
            raise StoragePermissionError(f"Unsafe storage key '{key}': must not start with '.' or '~'.")

        full_path = (self.base_path / f"{raw_key}{_SUFFIX}").resolve()
        try:
            full_path.relative_to(self.base_path)
        except ValueError as e:
            raise StoragePermissionError(f"Unsafe storage key '{key}': path traversal is not allowed.") from e
        return full_path

    def get(self, key: str) -> str | None:
        path = self._get_full_path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except PermissionError as e:
            raise StoragePermissionError(f"Cannot read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._get_full_path(key)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.base_path, prefix=f".{path.stem}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except PermissionError as e:
            raise StoragePermissionError(f"Cannot write to {path}: {e}") from e
        logger.debug(f"Wrote {len(value)} chars to {path.name}")

    def delete(self, key: str) -> bool:
        path = self._get_full_path(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    def keys(self, prefix: str = "") -> Iterator[str]:
        for path in sorted(self.base_path.glob(f"*{_SUFFIX}")):
            key = path.name[: -len(_SUFFIX)]
            if key.startswith(".") or not key.startswith(prefix):
                continue
            yield key
