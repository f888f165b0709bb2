"""Report output: column formats, the console-or-file writer and tables."""

from heapscope.core.output.columns import TEXT_COLUMN, Column, ColumnKind, format_value
from heapscope.core.output.table import (
    ConsoleTable,
    DelimitedTable,
    StructuredTable,
    create_table,
)
from heapscope.core.output.writer import ConsoleOrFileWriter, FileDestination

__all__ = [
    "Column",
    "ColumnKind",
    "ConsoleOrFileWriter",
    "ConsoleTable",
    "DelimitedTable",
    "FileDestination",
    "StructuredTable",
    "TEXT_COLUMN",
    "create_table",
    "format_value",
]
