"""Console-or-file output for reports.

Report text goes to a rich :class:`~rich.console.Console` until a file
destination is enabled; from then on it goes to every registered stream.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional, TextIO

from rich.console import Console

logger = logging.getLogger(__name__)


class FileDestination:
    """Handle for a file enabled on a :class:`ConsoleOrFileWriter`.

    Closing the handle (or leaving its ``with`` block) disables the file if
    it is still the writer's active destination.
    """

    def __init__(self, writer: ConsoleOrFileWriter, path: Path, stream: TextIO):
        self._writer = writer
        self.path = path
        self.stream = stream

    @property
    def active(self) -> bool:
        return self._writer.destination is self

    def close(self) -> None:
        if self.active:
            self._writer.disable()

    def __enter__(self) -> FileDestination:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class ConsoleOrFileWriter:
    """Writes report text to the console or to file streams.

    At most one file destination is enabled at a time.  Extra streams owned
    by the caller may be registered with :meth:`add_stream`.  Writes iterate
    over a snapshot of the stream list, so streams may be added or removed
    from another thread while a report is being written; a stream that
    fails is skipped and the others still receive the text.
    """

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console(highlight=False)
        self._streams: List[TextIO] = []
        self._lock = threading.Lock()
        self._destination: Optional[FileDestination] = None

    # -- destinations ------------------------------------------------------

    @property
    def destination(self) -> Optional[FileDestination]:
        return self._destination

    @property
    def file_path(self) -> Optional[str]:
        """Path of the enabled file destination, if any."""
        return str(self._destination.path) if self._destination else None

    def enable(self, file_path: str | Path) -> FileDestination:
        """Start writing to *file_path*, replacing any enabled file."""
        path = Path(file_path)
        stream = open(path, "w", encoding="utf-8")
        self.disable()
        self.add_stream(stream)
        self._destination = FileDestination(self, path, stream)
        logger.debug("Report output redirected to %s", path)
        return self._destination

    def disable(self) -> None:
        """Flush and close the enabled file destination; no-op if none."""
        destination = self._destination
        if destination is None:
            return
        self._destination = None
        self.remove_stream(destination.stream)
        try:
            destination.stream.flush()
            destination.stream.close()
        except (OSError, ValueError):
            logger.warning("Failed to close report file %s", destination.path, exc_info=True)

    def add_stream(self, stream: TextIO) -> None:
        """Register a stream; its lifetime stays with the caller."""
        with self._lock:
            self._streams.append(stream)

    def remove_stream(self, stream: TextIO) -> None:
        """Unregister a stream without closing it."""
        with self._lock:
            if stream in self._streams:
                self._streams.remove(stream)

    # -- writing -----------------------------------------------------------

    def write(self, text: str) -> None:
        self._write(text, style=None)

    def write_line(self, text: str = "") -> None:
        self._write(text + "\n", style=None)

    def write_warning(self, text: str) -> None:
        self._write(text, style="yellow")

    def write_error(self, text: str) -> None:
        self._write(text, style="bold red")

    def flush(self) -> None:
        for stream in tuple(self._streams):
            try:
                stream.flush()
            except (OSError, ValueError):
                logger.debug("Dropped flush to closed stream %r", stream)
        try:
            self._console.file.flush()
        except (OSError, ValueError):
            logger.debug("Dropped flush to closed console")

    def _write(self, text: str, style: Optional[str]) -> None:
        streams = tuple(self._streams)
        if not streams:
            try:
                if style is None:
                    # rich would expand tabs and re-flow table rows.
                    self._console.file.write(text)
                else:
                    self._console.out(text, end="", style=style, highlight=False)
            except (OSError, ValueError):
                logger.debug("Dropped write to closed console")
            return
        for stream in streams:
            try:
                stream.write(text)
            except (OSError, ValueError):
                logger.debug("Dropped write to closed stream %r", stream)

    # -- lifecycle ---------------------------------------------------------

    def close(self) -> None:
        self.disable()

    def __enter__(self) -> ConsoleOrFileWriter:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
