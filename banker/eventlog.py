"""
Audit trail entries shown to every player.
"""

import time
import uuid
from dataclasses import dataclass
from enum import Enum


class LogType(Enum):
    """Classification of a log entry."""

    INFO = "INFO"
    TRANSACTION = "TRANSACTION"
    ALERT = "ALERT"
    MOVE = "MOVE"


@dataclass(frozen=True)
class LogEntry:
    """A logged event in the game."""

    id: str
    timestamp: int  # epoch milliseconds
    message: str
    type: LogType = LogType.INFO

    def __repr__(self) -> str:
        return f"[{self.type.value}] {self.message}"


def new_entry(message: str, log_type: LogType = LogType.INFO) -> LogEntry:
    """Build a log entry stamped with a fresh id and the current time."""
    return LogEntry(
        id=uuid.uuid4().hex[:12],
        timestamp=int(time.time() * 1000),
        message=message,
        type=log_type,
    )
