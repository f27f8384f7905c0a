"""
User-facing notifications.

The pipeline reports transient status messages through a Notifier so that
any front end (terminal, GUI, test) can present them its own way.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from loguru import logger


class NoticeLevel(str, Enum):
    """Severity of a notification."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notice:
    """A single notification."""
    level: NoticeLevel
    message: str
    created_at: datetime = field(default_factory=datetime.now)


class Notifier:
    """Base notifier. Subclasses override notify()."""
    
    def notify(self, level: NoticeLevel, message: str) -> None:
        raise NotImplementedError
    
    def info(self, message: str) -> None:
        self.notify(NoticeLevel.INFO, message)
    
    def success(self, message: str) -> None:
        self.notify(NoticeLevel.SUCCESS, message)
    
    def warning(self, message: str) -> None:
        self.notify(NoticeLevel.WARNING, message)
    
    def error(self, message: str) -> None:
        self.notify(NoticeLevel.ERROR, message)


class LoggingNotifier(Notifier):
    """Forwards notifications to the log."""
    
    _LOG_LEVELS = {
        NoticeLevel.INFO: "INFO",
        NoticeLevel.SUCCESS: "SUCCESS",
        NoticeLevel.WARNING: "WARNING",
        NoticeLevel.ERROR: "ERROR",
    }
    
    def notify(self, level: NoticeLevel, message: str) -> None:
        logger.log(self._LOG_LEVELS[level], message)


class RecordingNotifier(Notifier):
    """Keeps notifications in memory, newest last."""
    
    def __init__(self):
        self.notices: list[Notice] = []
    
    def notify(self, level: NoticeLevel, message: str) -> None:
        self.notices.append(Notice(level=level, message=message))
    
    def messages(self, level: NoticeLevel | None = None) -> list[str]:
        """Messages, optionally filtered by level."""
        return [n.message for n in self.notices if level is None or n.level == level]
    
    def clear(self) -> None:
        self.notices.clear()
