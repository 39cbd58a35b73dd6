"""In-process key-value store, the equivalent of a browser's localStorage."""

from collections.abc import Iterator

from .base import KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. Values live only as long as the instance."""

    def __init__(self, initial: dict[str, str] | None = None, **config):
        super().__init__(**config)
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self, prefix: str = "") -> Iterator[str]:
        for key in sorted(self._data):
            if key.startswith(prefix):
                yield key
