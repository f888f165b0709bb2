from __future__ import annotations

from heapscope.core.types.config import (
    ExportOptions,
    GCHandleExportOptions,
    HandleDisplayType,
    HeapDisplayType,
    HeapExportOptions,
    HeapFilterOptions,
    HeapscopeConfig,
    ModuleExportOptions,
    OutputType,
    StringExportOptions,
    load_config,
    parse_generation,
    parse_handle_display_type,
    parse_handle_kind,
    parse_heap_display_type,
    parse_output_type,
)
from heapscope.core.types.results import ExportOutcome, ExportResult

__all__ = [
    # config
    "ExportOptions",
    "GCHandleExportOptions",
    "HandleDisplayType",
    "HeapDisplayType",
    "HeapExportOptions",
    "HeapFilterOptions",
    "HeapscopeConfig",
    "ModuleExportOptions",
    "OutputType",
    "StringExportOptions",
    "load_config",
    "parse_generation",
    "parse_handle_display_type",
    "parse_handle_kind",
    "parse_heap_display_type",
    "parse_output_type",
    # results
    "ExportOutcome",
    "ExportResult",
]
