"""Run log and notification banner reported to the front end."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class NotificationType(str, Enum):
    INFO = "info"
    ERROR = "error"
    SUCCESS = "success"


_LOGGING_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@dataclass
class LogEvent:
    """单条日志记录。"""
    level: LogLevel
    message: str
    timestamp: datetime = field(default_factory=datetime.now)

    def format(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] {self.level.value.upper()}: {self.message}"


@dataclass
class Notification:
    """当前横幅通知。"""
    type: NotificationType
    message: str


class EventLog:
    """
    Ordered log of a queue's activity plus the current notification.

    Every entry is mirrored to the ``logging`` module; listeners receive
    each new entry as it is recorded.
    """

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self.entries: List[LogEvent] = []
        self.notification: Optional[Notification] = None
        self._listeners: List[Callable[[LogEvent], None]] = []

    def subscribe(self, listener: Callable[[LogEvent], None]) -> None:
        self._listeners.append(listener)

    def log(self, level: LogLevel, message: str) -> LogEvent:
        event = LogEvent(level, message)
        self.entries.append(event)
        # 只保留最近的记录
        if len(self.entries) > self.max_entries:
            del self.entries[:len(self.entries) - self.max_entries]

        logger.log(_LOGGING_LEVELS[level], message)
        for listener in self._listeners:
            listener(event)
        return event

    def info(self, message: str) -> LogEvent:
        return self.log(LogLevel.INFO, message)

    def warn(self, message: str) -> LogEvent:
        return self.log(LogLevel.WARN, message)

    def error(self, message: str) -> LogEvent:
        return self.log(LogLevel.ERROR, message)

    def notify(self, type: NotificationType, message: str) -> Notification:
        """Replace the current banner."""
        self.notification = Notification(type, message)
        return self.notification

    def dismiss(self) -> None:
        self.notification = None

    def clear(self) -> None:
        self.entries.clear()
        self.notification = None
