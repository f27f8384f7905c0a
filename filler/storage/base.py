"""
Storage contract consumed by the template repository and output writer.

Paths are POSIX-style strings relative to the storage root. The root
itself is the empty string.
"""

import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StorageEntry:
    """A file or folder known to the storage backend."""
    path: str
    is_folder: bool
    mtime: float = 0.0
    size: int = 0
    real_path: str | None = None  # Where the entry lives once links are followed
    
    @property
    def name(self) -> str:
        """Last path component."""
        return posixpath.basename(self.path)
    
    @property
    def extension(self) -> str:
        """File extension without the leading dot."""
        if self.is_folder:
            return ""
        _, ext = posixpath.splitext(self.name)
        return ext[1:]


def normalize_path(path: str | None) -> str:
    """
    Normalize a storage path.
    
    Backslashes become slashes, duplicate and trailing slashes are
    collapsed, and "", "." and "/" all map to the root ("").
    """
    if not path:
        return ""
    cleaned = path.replace("\\", "/").strip()
    cleaned = posixpath.normpath(cleaned).lstrip("/")
    if cleaned in (".", ""):
        return ""
    return cleaned


def join_path(folder: str, name: str) -> str:
    """Join a folder and a child name into a normalized path."""
    folder = normalize_path(folder)
    return normalize_path(f"{folder}/{name}" if folder else name)


class StorageBackend(ABC):
    """
    Abstract storage facility.
    
    Every operation may suspend and may raise FileSystemError.
    """
    
    @abstractmethod
    async def read_file(self, path: str) -> str:
        """Read a text file."""
    
    @abstractmethod
    async def list_folder(self, path: str) -> list[StorageEntry]:
        """List the direct children of a folder."""
    
    @abstractmethod
    async def create_folder(self, path: str) -> StorageEntry:
        """Create a folder, including missing parents."""
    
    @abstractmethod
    async def create_file(self, path: str, content: str) -> StorageEntry:
        """Create a new file. Fails if the file already exists."""
    
    @abstractmethod
    async def file_exists(self, path: str) -> bool:
        """Check whether anything exists at the path."""
    
    @abstractmethod
    async def get_entry(self, path: str) -> StorageEntry | None:
        """Describe the entry at the path, or None if absent."""
