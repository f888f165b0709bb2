"""Heapscope: export managed heap contents, GC handles, modules and strings as tables."""

from __future__ import annotations

from heapscope.core.cancellation import CancellationToken
from heapscope.core.errors import (
    ConfigurationError,
    HeapscopeError,
    OperationCancelled,
    PreconditionError,
)
from heapscope.core.exporter import HeapExporter
from heapscope.core.output.writer import ConsoleOrFileWriter
from heapscope.core.types.config import (
    GCHandleExportOptions,
    HeapExportOptions,
    HeapscopeConfig,
    ModuleExportOptions,
    StringExportOptions,
    load_config,
)
from heapscope.core.types.results import ExportOutcome, ExportResult

__all__ = [
    "HeapExporter",
    "CancellationToken",
    "ConsoleOrFileWriter",
    "HeapExportOptions",
    "GCHandleExportOptions",
    "ModuleExportOptions",
    "StringExportOptions",
    "HeapscopeConfig",
    "ExportOutcome",
    "ExportResult",
    "HeapscopeError",
    "ConfigurationError",
    "PreconditionError",
    "OperationCancelled",
    "load_config",
]
