"""
Output writer.

Saves generated documents as new files named after their template and a
timestamp. Existing files are never overwritten.
"""

from datetime import datetime, timezone
from typing import Callable

from loguru import logger

from filler.config.schema import Config
from filler.errors import AlreadyExistsError, FileSystemError
from filler.storage.base import StorageBackend, StorageEntry, join_path, normalize_path
from filler.templates.repository import Template


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def file_timestamp(moment: datetime) -> str:
    """
    ISO-8601 UTC timestamp safe for filenames.
    
    2026-10-19T08:30:05.123Z -> 2026-10-19T08-30-05-123Z
    """
    moment = moment.astimezone(timezone.utc)
    iso = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


class OutputWriter:
    """Writes filled templates into the output folder."""
    
    def __init__(
        self,
        storage: StorageBackend,
        output_path: str = "",
        extension: str = "md",
        now: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            storage: Storage facility to write through.
            output_path: Destination folder. Empty means the storage root.
            extension: Extension for created files.
            now: Clock used for filename timestamps.
        """
        self.storage = storage
        self.output_path = normalize_path(output_path)
        self.extension = extension.lstrip(".") or "md"
        self._now = now or _utcnow
    
    @classmethod
    def from_config(
        cls,
        storage: StorageBackend,
        config: Config,
        now: Callable[[], datetime] | None = None,
    ) -> "OutputWriter":
        return cls(
            storage,
            output_path=config.paths.output_path,
            extension=config.paths.template_extension,
            now=now,
        )
    
    def generate_unique_file_name(self, display_name: str) -> str:
        """Build '{display_name}-{timestamp}.{extension}' for the current time."""
        return f"{display_name}-{file_timestamp(self._now())}.{self.extension}"
    
    async def get_or_create_output_folder(self) -> str:
        """
        Make sure the output folder exists.
        
        Returns:
            The folder path.
        
        Raises:
            FileSystemError: If the folder cannot be created or is a file.
        """
        folder = self.output_path
        entry = await self.storage.get_entry(folder)
        
        if entry is None:
            await self.storage.create_folder(folder)
            logger.info(f"Created output folder: {folder}")
        elif not entry.is_folder:
            raise FileSystemError(f"Output path is not a folder: {folder}", path=folder)
        
        return folder
    
    async def create_filled_file(self, template: Template, content: str) -> str:
        """
        Save generated content as a new file.
        
        Args:
            template: The template the content was generated from.
            content: The document text.
        
        Returns:
            Path of the created file.
        
        Raises:
            FileSystemError: If the folder or file cannot be created.
            AlreadyExistsError: If the computed path is already taken.
        """
        folder = await self.get_or_create_output_folder()
        file_path = join_path(folder, self.generate_unique_file_name(template.display_name))
        
        if await self.storage.file_exists(file_path):
            raise AlreadyExistsError(file_path)
        
        entry: StorageEntry = await self.storage.create_file(file_path, content)
        logger.info(f"Filled template saved to {entry.path}")
        return entry.path
