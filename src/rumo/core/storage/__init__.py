"""
Key-value persistence for rumo.

Provides whole-blob get/set stores (in-memory and local filesystem) and the
JSON codec used to serialize snapshots.
"""

from .base import KeyValueStore, StorageError, StorageKeyError, StoragePermissionError
from .codec import decode_blob, encode_blob
from .local import LocalKeyValueStore
from .memory import MemoryKeyValueStore

__all__ = [
    "KeyValueStore",
    "LocalKeyValueStore",
    "MemoryKeyValueStore",
    "StorageError",
    "StorageKeyError",
    "StoragePermissionError",
    "decode_blob",
    "encode_blob",
]
