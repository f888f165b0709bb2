"""HeapExporter -- one entry point per report family.

Each entry point validates its options completely (output type, display
type, filters, heap state) before any stream is read, then hands the run
to the matching engine.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from heapscope.bridge.runtime import HeapRuntime
from heapscope.core.aggregation import (
    AggregationStrategy,
    FragmentationStrategy,
    HandleKindTotalsStrategy,
    StringStatisticsStrategy,
    TypeStatisticsStrategy,
    address_listing,
    handle_listing,
    module_listing,
    module_type_listing,
    object_listing,
    string_listing,
    thin_lock_listing,
)
from heapscope.core.cancellation import CancellationToken
from heapscope.core.engine import (
    GCHandleReportEngine,
    HeapExportEngine,
    ModuleReportEngine,
    TableSink,
)
from heapscope.core.errors import PreconditionError
from heapscope.core.filters import ObjectFilterChain, string_matcher
from heapscope.core.output.columns import Column
from heapscope.core.output.table import ConsoleTable, create_table
from heapscope.core.output.writer import ConsoleOrFileWriter
from heapscope.core.types.config import (
    ExportOptions,
    GCHandleExportOptions,
    HandleDisplayType,
    HeapDisplayType,
    HeapExportOptions,
    HeapscopeConfig,
    ModuleExportOptions,
    OutputType,
    StringExportOptions,
    parse_handle_kind,
)
from heapscope.core.types.results import ExportResult

logger = logging.getLogger(__name__)

_HEAP_NOT_WALKABLE = (
    "The GC heap is not in a valid state for traversal (use ignore_gc_state to override)."
)


class HeapExporter:
    """Produces heap, handle, module and string reports for one runtime.

    Usage::

        exporter = HeapExporter(HeapSnapshot.from_json("heap.json"))
        exporter.dump_heap(HeapExportOptions(display_type="ObjectSummary"))
        exporter.dump_gc_handles(GCHandleExportOptions(output_type="csv", output_file="handles.csv"))
    """

    def __init__(
        self,
        runtime: HeapRuntime,
        writer: Optional[ConsoleOrFileWriter] = None,
        token: Optional[CancellationToken] = None,
        config: Optional[HeapscopeConfig] = None,
    ):
        self.runtime = runtime
        self.writer = writer or ConsoleOrFileWriter()
        self.token = token or CancellationToken()
        self.config = config or HeapscopeConfig()

    # -- heap objects ------------------------------------------------------

    def dump_heap(self, options: Optional[HeapExportOptions] = None) -> ExportResult:
        """Export heap objects, or statistics about them."""
        options = options or self.config.heap
        display_type = options.resolved_display_type()
        sink = self._sink(options)

        type_handle: Optional[int] = None
        if display_type in (HeapDisplayType.STRING, HeapDisplayType.STRING_SUMMARY):
            type_handle = self.runtime.string_type_handle
        elif display_type in (HeapDisplayType.FREE, HeapDisplayType.FREE_SUMMARY):
            type_handle = self.runtime.free_type_handle
        chain = ObjectFilterChain.from_options(self.runtime, options, type_handle)
        strategy = self._heap_strategy(display_type, options)
        self._check_heap_walkable(options.ignore_gc_state)

        logger.debug("dump_heap: %s", display_type.value)
        engine = HeapExportEngine(self.runtime, self.writer, self.token)
        return engine.run_heap(chain, strategy, sink)

    def _heap_strategy(
        self, display_type: HeapDisplayType, options: HeapExportOptions
    ) -> AggregationStrategy:
        if display_type is HeapDisplayType.ADDRESS:
            return address_listing()
        if display_type is HeapDisplayType.THIN_LOCK:
            return thin_lock_listing(self.runtime)
        if display_type in (HeapDisplayType.STRING, HeapDisplayType.FREE, HeapDisplayType.OBJECT):
            return object_listing(self.runtime)
        if display_type is HeapDisplayType.STRING_SUMMARY:
            return StringStatisticsStrategy(self.runtime, options.max_string_length)
        if display_type is HeapDisplayType.OBJECT_FRAGMENTATION_SUMMARY:
            return FragmentationStrategy(self.runtime, options.min_fragmentation_block_size)
        return TypeStatisticsStrategy(self.runtime)

    # -- GC handles --------------------------------------------------------

    def dump_gc_handles(self, options: Optional[GCHandleExportOptions] = None) -> ExportResult:
        """Export GC handles, per-type statistics or per-kind totals."""
        options = options or self.config.handles
        display_type = options.resolved_display_type()
        kind = parse_handle_kind(options.handle_kind) if options.handle_kind else None
        sink = self._sink(options)

        strategy: AggregationStrategy
        if display_type is HandleDisplayType.HANDLES:
            strategy = handle_listing()
        elif display_type is HandleDisplayType.TOTALS:
            strategy = HandleKindTotalsStrategy()
        else:
            strategy = TypeStatisticsStrategy(self.runtime, object_of=lambda handle: handle.target)

        engine = GCHandleReportEngine(self.runtime, self.writer, self.token)
        return engine.run_handles(kind, strategy, sink)

    # -- modules -----------------------------------------------------------

    def dump_modules(self, options: Optional[ModuleExportOptions] = None) -> ExportResult:
        """Export managed modules, or the types they define."""
        options = options or self.config.modules
        sink = self._sink(options)
        strategy = module_type_listing() if options.types else module_listing()
        engine = ModuleReportEngine(self.runtime, self.writer, self.token)
        return engine.run_modules(options.name, strategy, sink)

    # -- strings -----------------------------------------------------------

    def dump_strings(self, options: Optional[StringExportOptions] = None) -> ExportResult:
        """Export string objects matching the configured value filters."""
        options = options or self.config.strings
        sink = self._sink(options)
        chain = ObjectFilterChain().by_type_handle(self.runtime, self.runtime.string_type_handle)
        strategy = string_listing(self.runtime, options.max_string_length, string_matcher(options))
        self._check_heap_walkable(options.ignore_gc_state)

        engine = HeapExportEngine(self.runtime, self.writer, self.token)
        return engine.run_heap(chain, strategy, sink)

    # -- helpers -----------------------------------------------------------

    def _check_heap_walkable(self, ignore_gc_state: bool) -> None:
        if not self.runtime.can_walk_heap and not ignore_gc_state:
            raise PreconditionError(_HEAP_NOT_WALKABLE)

    def _sink(self, options: ExportOptions) -> TableSink:
        """Validate the output type now; the table is created when needed."""
        output_type: OutputType = options.resolved_output_type()
        output_file = options.output_file

        def sink(columns: Sequence[Column]) -> ConsoleTable:
            return create_table(columns, output_type, output_file, self.writer)

        return sink
