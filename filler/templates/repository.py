"""
Template repository.

Discovers template files under the configured folder, caches them by path,
and serves their content. The cache is refreshed at most once per scan
interval, trading instant freshness for low I/O.
"""

import posixpath
import re
import time
from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger

from filler.config.schema import Config
from filler.errors import InvalidTemplateContentError, TemplateNotFoundError
from filler.storage.base import StorageBackend, StorageEntry, normalize_path
from filler.templates.frontmatter import parse_frontmatter


@dataclass
class Template:
    """A template document discovered in storage."""
    
    path: str  # Unique cache key
    display_name: str
    content_ref: StorageEntry
    last_modified: float


def format_display_name(path: str) -> str:
    """
    Derive a display name from a template path.
    
    "templates/meeting-notes.md" -> "Meeting Notes"
    """
    stem, _ = posixpath.splitext(posixpath.basename(path))
    words = [w for w in re.split(r"[-_]+", stem) if w]
    return " ".join(w[0].upper() + w[1:] for w in words) or stem


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class TemplateRepository:
    """
    Cache of templates keyed by path.
    
    Every read goes through refresh_if_stale(), which rescans the folder
    only when more than scan_interval_ms has passed since the last scan.
    """
    
    def __init__(
        self,
        storage: StorageBackend,
        templates_path: str = "templates",
        template_extension: str = "md",
        scan_interval_ms: int = 5000,
        clock: Callable[[], float] | None = None,
    ):
        """
        Args:
            storage: Storage facility to scan and read through.
            templates_path: Folder holding templates, relative to the storage root.
            template_extension: Extension of template files, with or without dot.
            scan_interval_ms: Minimum time between folder scans.
            clock: Millisecond clock. Defaults to a monotonic clock.
        """
        self.storage = storage
        self.templates_path = normalize_path(templates_path)
        self.template_extension = template_extension.lstrip(".").lower()
        self.scan_interval_ms = scan_interval_ms
        self._clock = clock or _monotonic_ms
        
        self._cache: dict[str, Template] = {}
        self._last_scan_time: float | None = None
    
    @classmethod
    def from_config(
        cls,
        storage: StorageBackend,
        config: Config,
        clock: Callable[[], float] | None = None,
    ) -> "TemplateRepository":
        paths = config.paths
        return cls(
            storage,
            templates_path=paths.templates_path,
            template_extension=paths.template_extension,
            scan_interval_ms=paths.scan_interval_ms,
            clock=clock,
        )
    
    @property
    def last_scan_time(self) -> float | None:
        return self._last_scan_time
    
    async def get_templates(self) -> list[Template]:
        """Get all available templates, ordered by path."""
        await self.refresh_if_stale()
        return [self._cache[path] for path in sorted(self._cache)]
    
    async def get_template(self, path: str) -> Template:
        """
        Get a template by path.
        
        Raises:
            TemplateNotFoundError: If no template has that path.
        """
        await self.refresh_if_stale()
        key = normalize_path(path)
        template = self._cache.get(key)
        if template is None:
            raise TemplateNotFoundError(key)
        return template
    
    async def load_template(self, path: str) -> str:
        """
        Load and validate template content.
        
        Raises:
            TemplateNotFoundError: If the template is unknown.
            FileSystemError: If the file cannot be read.
            InvalidTemplateContentError: If the content is empty.
        """
        template = await self.get_template(path)
        content = await self.storage.read_file(template.path)
        return self._validate_content(template.path, content)
    
    @staticmethod
    def _validate_content(path: str, content: str) -> str:
        if not content or not content.strip():
            raise InvalidTemplateContentError(path)
        return content
    
    async def template_exists(self, path: str) -> bool:
        await self.refresh_if_stale()
        return normalize_path(path) in self._cache
    
    async def get_template_modification_time(self, path: str) -> float:
        template = await self.get_template(path)
        return template.last_modified
    
    async def get_template_metadata(self, path: str) -> dict[str, Any]:
        """Get the frontmatter of a template (empty if it has none)."""
        content = await self.load_template(path)
        frontmatter, _ = parse_frontmatter(content)
        return frontmatter
    
    async def refresh_if_stale(self) -> None:
        """Rescan the templates folder if the scan interval has elapsed."""
        now = self._clock()
        if (
            self._last_scan_time is None
            or now - self._last_scan_time > self.scan_interval_ms
        ):
            await self.scan()
            self._last_scan_time = now
    
    async def scan(self) -> None:
        """
        Scan the templates folder and update the cache.
        
        A missing folder leaves the cache untouched.
        
        Raises:
            FileSystemError: If the folder exists but cannot be walked.
        """
        root = await self.storage.get_entry(self.templates_path)
        if root is None or not root.is_folder:
            logger.warning(f"Templates folder not found: {self.templates_path or '/'}")
            return
        
        seen: set[str] = set()
        await self._scan_folder(root, seen, visited=set())
        
        # Drop templates that were deleted or renamed
        for path in list(self._cache):
            if path not in seen:
                del self._cache[path]
                logger.debug(f"Template removed: {path}")
        
        logger.debug(f"Scanned {len(seen)} templates in {self.templates_path or '/'}")
    
    async def _scan_folder(
        self,
        folder: StorageEntry,
        seen: set[str],
        visited: set[str],
    ) -> None:
        # Symlinked folders can lead back to one already walked
        key = folder.real_path if folder.real_path is not None else folder.path
        if key in visited:
            logger.debug(f"Skipping already scanned folder: {folder.path}")
            return
        visited.add(key)
        
        for entry in await self.storage.list_folder(folder.path):
            if entry.is_folder:
                await self._scan_folder(entry, seen, visited)
            elif self._is_template(entry):
                seen.add(entry.path)
                cached = self._cache.get(entry.path)
                if cached is None or cached.last_modified != entry.mtime:
                    self._cache[entry.path] = Template(
                        path=entry.path,
                        display_name=format_display_name(entry.path),
                        content_ref=entry,
                        last_modified=entry.mtime,
                    )
    
    def _is_template(self, entry: StorageEntry) -> bool:
        if entry.extension.lower() != self.template_extension:
            return False
        if not self.templates_path:
            return True
        return entry.path.startswith(self.templates_path + "/")
    
    def set_templates_path(self, path: str) -> None:
        """Point the repository at a new folder and force a rescan."""
        self.templates_path = normalize_path(path)
        self.clear_cache()
    
    def clear_cache(self) -> None:
        """Forget all templates and force a rescan on next access."""
        self._cache.clear()
        self._last_scan_time = None
