"""Local filesystem storage rooted at a workspace directory."""

import asyncio
from pathlib import Path

from loguru import logger

from filler.errors import AlreadyExistsError, FileSystemError
from filler.storage.base import StorageBackend, StorageEntry, join_path, normalize_path


class LocalStorage(StorageBackend):
    """
    Storage backend over a local directory.
    
    Blocking filesystem calls run through asyncio.to_thread so they never
    stall the event loop. Entries keep the path they were requested by;
    symlinks are followed but may not lead outside the root.
    """
    
    def __init__(self, root: Path):
        self.root = Path(root).expanduser().resolve()
    
    def resolve(self, path: str) -> Path:
        """Map a storage path to an absolute path inside the root."""
        relative = normalize_path(path)
        target = (self.root / relative).resolve() if relative else self.root
        if not self._inside_root(target):
            raise FileSystemError(f"Path escapes storage root: {path}", path=path)
        return target
    
    def _inside_root(self, target: Path) -> bool:
        return target == self.root or self.root in target.parents
    
    def _to_entry(self, target: Path, path: str) -> StorageEntry:
        stat = target.stat()
        real = target.resolve().relative_to(self.root).as_posix()
        return StorageEntry(
            path=path,
            is_folder=target.is_dir(),
            mtime=stat.st_mtime,
            size=stat.st_size,
            real_path="" if real == "." else real,
        )
    
    async def read_file(self, path: str) -> str:
        target = self.resolve(path)
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FileSystemError(f"Failed to read {path}: {e}", path=path) from e
    
    async def list_folder(self, path: str) -> list[StorageEntry]:
        folder = normalize_path(path)
        target = self.resolve(folder)
        
        def _list() -> list[StorageEntry]:
            entries = []
            for child in sorted(target.iterdir()):
                child_path = join_path(folder, child.name)
                # Broken links and links out of the workspace are not listed
                if not child.exists() or not self._inside_root(child.resolve()):
                    logger.debug(f"Skipping unreachable entry: {child_path}")
                    continue
                entries.append(self._to_entry(child, child_path))
            return entries
        
        try:
            return await asyncio.to_thread(_list)
        except OSError as e:
            raise FileSystemError(f"Failed to list {path or '/'}: {e}", path=path) from e
    
    async def create_folder(self, path: str) -> StorageEntry:
        target = self.resolve(path)
        try:
            await asyncio.to_thread(target.mkdir, parents=True, exist_ok=True)
            logger.debug(f"Created folder: {target}")
            return await asyncio.to_thread(self._to_entry, target, normalize_path(path))
        except OSError as e:
            raise FileSystemError(f"Failed to create folder {path}: {e}", path=path) from e
    
    async def create_file(self, path: str, content: str) -> StorageEntry:
        target = self.resolve(path)
        
        def _create() -> StorageEntry:
            # "x" mode refuses to clobber an existing file
            with open(target, "x", encoding="utf-8") as f:
                f.write(content)
            return self._to_entry(target, normalize_path(path))
        
        try:
            return await asyncio.to_thread(_create)
        except FileExistsError as e:
            raise AlreadyExistsError(path) from e
        except OSError as e:
            raise FileSystemError(f"Failed to write {path}: {e}", path=path) from e
    
    async def file_exists(self, path: str) -> bool:
        target = self.resolve(path)
        return await asyncio.to_thread(target.exists)
    
    async def get_entry(self, path: str) -> StorageEntry | None:
        target = self.resolve(path)
        
        def _entry() -> StorageEntry | None:
            if not target.exists():
                return None
            return self._to_entry(target, normalize_path(path))
        
        try:
            return await asyncio.to_thread(_entry)
        except OSError as e:
            raise FileSystemError(f"Failed to stat {path}: {e}", path=path) from e
