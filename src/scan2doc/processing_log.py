"""Append-only, timestamped processing log.

The surrounding application reads this stream to show progress and
recoverable failures. Every entry is also forwarded to stdlib logging.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel, Field

log = logging.getLogger("scan2doc")


class LogEntry(BaseModel):
    """One line of the processing log."""

    timestamp: datetime = Field(default_factory=datetime.now)
    level: int = logging.INFO
    message: str

    def render(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] {self.message}"


class ProcessingLog:
    """Human-readable log of a pipeline run."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._entries: list[LogEntry] = []
        self._subscribers: list[Callable[[LogEntry], None]] = []
        self._logger = logger or log

    def add(self, message: str, level: int = logging.INFO) -> LogEntry:
        """Append an entry and notify subscribers."""
        entry = LogEntry(level=level, message=message)
        self._entries.append(entry)
        self._logger.log(level, message)
        for callback in self._subscribers:
            callback(entry)
        return entry

    def info(self, message: str) -> LogEntry:
        return self.add(message, logging.INFO)

    def warning(self, message: str) -> LogEntry:
        return self.add(message, logging.WARNING)

    def error(self, message: str) -> LogEntry:
        return self.add(message, logging.ERROR)

    def subscribe(self, callback: Callable[[LogEntry], None]) -> None:
        self._subscribers.append(callback)

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        """Snapshot of all entries so far."""
        return tuple(self._entries)

    def lines(self) -> list[str]:
        return [entry.render() for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)
