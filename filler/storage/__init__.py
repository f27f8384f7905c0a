"""Storage facility used by the template pipeline."""

from filler.storage.base import StorageBackend, StorageEntry, normalize_path, join_path
from filler.storage.local import LocalStorage

__all__ = [
    "StorageBackend",
    "StorageEntry",
    "LocalStorage",
    "normalize_path",
    "join_path",
]
