"""Exceptions raised by the export pipeline."""

from __future__ import annotations


class HeapscopeError(Exception):
    """Base class for heapscope errors."""


class ConfigurationError(HeapscopeError, ValueError):
    """Invalid report configuration, detected before any stream is read."""


class PreconditionError(HeapscopeError):
    """The runtime is not in a state the report can be produced from."""


class OperationCancelled(Exception):
    """Signal raised when a report's cancellation token has been triggered.

    Deliberately not a :class:`HeapscopeError`: engines turn it into a
    cancelled outcome instead of a failure.
    """
