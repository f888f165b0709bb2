"""Cooperative cancellation for long-running heap scans."""

from __future__ import annotations

import threading

from heapscope.core.errors import OperationCancelled


class CancellationToken:
    """Thread-safe flag polled by engines once per scanned item.

    ``cancel()`` may be called from any thread (a signal handler, a UI
    callback); the scanning thread notices on its next poll.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def throw_if_cancelled(self) -> None:
        """Raise :class:`OperationCancelled` if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelled()
