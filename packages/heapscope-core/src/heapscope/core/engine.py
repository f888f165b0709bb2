"""Report engines: one forward pass from an item stream to a table."""

from __future__ import annotations

import logging
from typing import Callable, Generic, Iterable, Iterator, Optional, Sequence, TypeVar

from heapscope.bridge.runtime import HeapRuntime
from heapscope.bridge.types import HandleDescriptor, HandleKind, ModuleDescriptor, ObjectDescriptor
from heapscope.core.aggregation import AggregationStrategy
from heapscope.core.cancellation import CancellationToken
from heapscope.core.errors import OperationCancelled
from heapscope.core.filters import ObjectFilterChain
from heapscope.core.output.columns import Column
from heapscope.core.output.table import ConsoleTable
from heapscope.core.output.writer import ConsoleOrFileWriter
from heapscope.core.types.results import ExportOutcome, ExportResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

ItemFilter = Callable[[Iterable[T]], Iterable[T]]
TableSink = Callable[[Sequence[Column]], ConsoleTable]


class ExportEngine(Generic[T]):
    """Drives a stream through filters and a strategy into a table.

    The cancellation token is polled once per incoming item, before the
    filters see it.  Streaming strategies get their table (and header)
    before the first item; accumulating strategies get theirs once the
    stream is exhausted.  A completed run writes the footer exactly once.
    A cancelled run flushes what was written, releases the file destination
    without a footer and reports :attr:`ExportOutcome.CANCELLED`.
    """

    item_name = "item"

    def __init__(self, writer: ConsoleOrFileWriter, token: Optional[CancellationToken] = None):
        self.writer = writer
        self.token = token or CancellationToken()

    def run(
        self,
        stream: Iterable[T],
        filters: Optional[ItemFilter[T]],
        strategy: AggregationStrategy[T],
        sink: TableSink,
    ) -> ExportResult:
        scanned = 0
        table: Optional[ConsoleTable] = None

        def checked(items: Iterable[T]) -> Iterator[T]:
            nonlocal scanned
            for item in items:
                self.token.throw_if_cancelled()
                scanned += 1
                yield item

        try:
            if strategy.streaming:
                table = sink(strategy.columns)
                table.write_header(*strategy.header)
            items: Iterable[T] = checked(stream)
            if filters is not None:
                items = filters(items)
            for item in items:
                strategy.accept(item, table)
            if not strategy.streaming:
                table = sink(strategy.columns)
                table.write_header(*strategy.header)
                for row in strategy.rows():
                    table.write_row(*row)
            table.write_footer()
        except OperationCancelled:
            self.writer.flush()
            if table is not None:
                table.release()
            rows = table.rows_written if table is not None else 0
            logger.warning("Report cancelled after %d %ss (%d rows written)", scanned, self.item_name, rows)
            return ExportResult(outcome=ExportOutcome.CANCELLED, items_scanned=scanned, rows_written=rows)
        except Exception:
            if table is not None:
                table.release()
            raise

        logger.info("Report completed: %d %ss scanned, %d rows written", scanned, self.item_name, table.rows_written)
        return ExportResult(
            outcome=ExportOutcome.COMPLETED,
            items_scanned=scanned,
            rows_written=table.rows_written,
        )


class HeapExportEngine(ExportEngine[ObjectDescriptor]):
    """Runs object reports over a runtime's heap walk."""

    item_name = "object"

    def __init__(
        self,
        runtime: HeapRuntime,
        writer: ConsoleOrFileWriter,
        token: Optional[CancellationToken] = None,
    ):
        super().__init__(writer, token)
        self.runtime = runtime

    def run_heap(
        self,
        chain: ObjectFilterChain,
        strategy: AggregationStrategy[ObjectDescriptor],
        sink: TableSink,
    ) -> ExportResult:
        return self.run(self.runtime.enumerate_objects(self.token), chain.apply, strategy, sink)


class GCHandleReportEngine(ExportEngine[HandleDescriptor]):
    """Runs handle reports over a runtime's handle table."""

    item_name = "handle"

    def __init__(
        self,
        runtime: HeapRuntime,
        writer: ConsoleOrFileWriter,
        token: Optional[CancellationToken] = None,
    ):
        super().__init__(writer, token)
        self.runtime = runtime

    def run_handles(
        self,
        kind: Optional[HandleKind],
        strategy: AggregationStrategy[HandleDescriptor],
        sink: TableSink,
    ) -> ExportResult:
        filters: Optional[ItemFilter[HandleDescriptor]] = None
        if kind is not None:
            filters = lambda handles: (h for h in handles if h.kind is kind)  # noqa: E731
        return self.run(self.runtime.enumerate_handles(), filters, strategy, sink)


class ModuleReportEngine(ExportEngine[ModuleDescriptor]):
    """Runs module reports over a runtime's loaded modules."""

    item_name = "module"

    def __init__(
        self,
        runtime: HeapRuntime,
        writer: ConsoleOrFileWriter,
        token: Optional[CancellationToken] = None,
    ):
        super().__init__(writer, token)
        self.runtime = runtime

    def run_modules(
        self,
        name_prefix: Optional[str],
        strategy: AggregationStrategy[ModuleDescriptor],
        sink: TableSink,
    ) -> ExportResult:
        filters: Optional[ItemFilter[ModuleDescriptor]] = None
        if name_prefix:
            filters = lambda modules: (  # noqa: E731
                m for m in modules if _module_file_name(m).startswith(name_prefix)
            )
        return self.run(self.runtime.enumerate_modules(), filters, strategy, sink)


def _module_file_name(module: ModuleDescriptor) -> str:
    if not module.name:
        return ""
    return module.name.replace("\\", "/").rsplit("/", 1)[-1]
