"""Streaming report tables.

A table writes its header, then one line of output per row as soon as the
row is handed over, then a footer.  Only the row being rendered is held in
memory.  Three encodings exist, selected by :class:`OutputType`:

* :class:`ConsoleTable` -- fixed-width columns for reading in a terminal.
* :class:`DelimitedTable` -- comma or tab separated lines.  Values are not
  quoted, so a value containing the separator produces an extra field.
* :class:`StructuredTable` -- a single-line JSON array of objects keyed by
  the header titles.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional, Sequence

from heapscope.core.output.columns import TEXT_COLUMN, Column
from heapscope.core.output.writer import ConsoleOrFileWriter, FileDestination
from heapscope.core.types.config import OutputType

logger = logging.getLogger(__name__)


class ConsoleTable:
    """Fixed-width table for interactive output."""

    export = False

    def __init__(
        self,
        writer: ConsoleOrFileWriter,
        columns: Sequence[Column],
        destination: Optional[FileDestination] = None,
    ):
        self.writer = writer
        self.columns: List[Column] = list(columns)
        self.titles: List[str] = []
        self.rows_written = 0
        self._destination = destination
        self._header_written = False
        self._footer_written = False

    def column(self, index: int) -> Column:
        """Column definition for *index*; values past the declared columns are text."""
        return self.columns[index] if index < len(self.columns) else TEXT_COLUMN

    # -- lifecycle ---------------------------------------------------------

    def write_header(self, *titles: str) -> None:
        if self._header_written:
            raise RuntimeError("Table header already written")
        self._header_written = True
        self.titles = list(titles)
        self._emit_header(self.titles)

    def write_row(self, *values: Any) -> None:
        if not self._header_written:
            raise RuntimeError("Table header must be written before rows")
        if self._footer_written:
            raise RuntimeError("Table footer already written")
        self._emit_row(values)
        self.rows_written += 1

    def write_footer(self) -> None:
        if self._footer_written:
            raise RuntimeError("Table footer already written")
        self._footer_written = True
        self._emit_footer()
        self.release()

    def release(self) -> None:
        """Close the file destination this table was created with, if any."""
        if self._destination is not None:
            self._destination.close()
            self._destination = None

    @property
    def finished(self) -> bool:
        return self._footer_written

    # -- encoding ----------------------------------------------------------

    def _emit_header(self, titles: List[str]) -> None:
        cells = []
        for i, title in enumerate(titles):
            column = self.column(i)
            width = column.display_width
            cells.append(title.rjust(width) if column.right_aligned else title.ljust(width))
        self.writer.write_line(" ".join(cells).rstrip())

    def _emit_row(self, values: Sequence[Any]) -> None:
        cells = [self.column(i).format(value) for i, value in enumerate(values)]
        self.writer.write_line(" ".join(cells).rstrip())

    def _emit_footer(self) -> None:
        pass


class DelimitedTable(ConsoleTable):
    """Separator-joined lines, one per row."""

    export = True

    def __init__(
        self,
        writer: ConsoleOrFileWriter,
        columns: Sequence[Column],
        separator: str = ",",
        destination: Optional[FileDestination] = None,
    ):
        super().__init__(writer, columns, destination)
        self.separator = separator

    def _emit_header(self, titles: List[str]) -> None:
        self.writer.write_line(self.separator.join(titles))

    def _emit_row(self, values: Sequence[Any]) -> None:
        cells = [self.column(i).format(value, export=True) for i, value in enumerate(values)]
        self.writer.write_line(self.separator.join(cells))


class StructuredTable(ConsoleTable):
    """JSON array of row objects, written without pretty-printing."""

    export = True

    def _emit_header(self, titles: List[str]) -> None:
        self.writer.write("[")

    def _emit_row(self, values: Sequence[Any]) -> None:
        fields = []
        for i, value in enumerate(values):
            title = self.titles[i] if i < len(self.titles) else f"Column{i}"
            column = self.column(i)
            if column.is_numeric:
                rendered = "null" if value is None else column.format(value, export=True)
            else:
                rendered = json.dumps(column.format(value, export=True), ensure_ascii=False)
            fields.append(f"{json.dumps(title)}:{rendered}")
        prefix = "," if self.rows_written else ""
        self.writer.write(prefix + "{" + ",".join(fields) + "}")

    def _emit_footer(self) -> None:
        self.writer.write_line("]")


def create_table(
    columns: Sequence[Column],
    output_type: OutputType,
    output_file: Optional[str],
    writer: ConsoleOrFileWriter,
) -> ConsoleTable:
    """Create the table for *output_type*, redirecting output to *output_file*.

    The returned table owns the file destination and releases it when its
    footer is written (or when :meth:`ConsoleTable.release` is called).
    """
    destination = writer.enable(output_file) if output_file else None
    if output_type is OutputType.CSV:
        return DelimitedTable(writer, columns, ",", destination)
    if output_type is OutputType.TAB:
        return DelimitedTable(writer, columns, "\t", destination)
    if output_type is OutputType.JSON:
        return StructuredTable(writer, columns, destination)
    logger.debug("Console table with %d columns", len(columns))
    return ConsoleTable(writer, columns, destination)
