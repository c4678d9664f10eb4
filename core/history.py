"""
History log storage.

The history log is the append-only, totally ordered record of every event
published to the chat. Joining participants read it as a snapshot; the
broadcast hub is its only writer.

Two backends are provided: an in-memory list and a JSON-lines file that
survives restarts.
"""

import logging
from pathlib import Path
from typing import Protocol

from .events import decode, encode_text
from .exceptions import MalformedEventError, StorageFailureError
from .models import Event

logger = logging.getLogger(__name__)


class HistoryLog(Protocol):
    """Abstract interface for an append-only event log."""

    def append(self, event: Event) -> int:
        """Append an event and return its zero-based sequence index."""
        ...

    def snapshot(self) -> list[Event]:
        """Return every event appended so far, in append order."""
        ...

    def since(self, index: int) -> list[Event]:
        """Return events whose sequence index is >= index."""
        ...

    def __len__(self) -> int: ...


class MemoryHistoryLog:
    """History log kept in process memory."""

    def __init__(self, events: list[Event] | None = None) -> None:
        self._events: list[Event] = list(events or [])

    def append(self, event: Event) -> int:
        self._events.append(event)
        return len(self._events) - 1

    def snapshot(self) -> list[Event]:
        return list(self._events)

    def since(self, index: int) -> list[Event]:
        return self._events[max(index, 0):]

    def __len__(self) -> int:
        return len(self._events)


class FileHistoryLog(MemoryHistoryLog):
    """
    History log persisted as JSON lines.

    Each line holds one encoded event. The file is read once on construction;
    afterwards the in-memory copy serves reads and every append is written
    through to disk before it becomes visible.

    A file that does not end in a newline (a write interrupted by a crash or
    a failed append that wrote part of a line) is terminated before the next
    record is written, so the partial line never swallows a later event.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path
        self._needs_newline = False
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return

        with self.path.open("r", encoding="utf-8") as fh:
            for lineno, raw in enumerate(fh, start=1):
                self._needs_newline = not raw.endswith("\n")
                line = raw.strip()
                if not line:
                    continue
                try:
                    self._events.append(decode(line))
                except MalformedEventError as e:
                    logger.warning("Skipping %s:%d: %s", self.path, lineno, e.reason)

        if self._needs_newline:
            logger.warning("%s ends in a partial line; it will be terminated on append", self.path)
        logger.info("Loaded %d history events from %s", len(self._events), self.path)

    def append(self, event: Event) -> int:
        record = encode_text(event) + "\n"
        if self._needs_newline:
            record = "\n" + record

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(record)
        except OSError as e:
            # Part of the record may have reached the file
            self._needs_newline = True
            raise StorageFailureError(f"failed to append to {self.path}: {e}") from e

        self._needs_newline = False
        return super().append(event)


def open_history_log(path: str | Path | None = None) -> HistoryLog:
    """
    Open the configured history log.

    Args:
        path: JSON-lines file to persist to; in-memory when not given

    Returns:
        A history log instance
    """
    if path is None:
        return MemoryHistoryLog()
    return FileHistoryLog(Path(path).expanduser())
