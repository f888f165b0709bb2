"""Column formatting rules shared by every table encoding."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional


class ColumnKind(Enum):
    """How a column's values are rendered."""

    POINTER = auto()
    DUMP_OBJ = auto()
    DUMP_HEAP = auto()
    LIST_NEAR_OBJ = auto()
    HEX_VALUE = auto()
    INTEGER = auto()
    INTEGER_WITHOUT_COMMAS = auto()
    TEXT = auto()
    TYPE_NAME = auto()


# Object addresses, type handles and "near object" addresses are all shown
# as pointers; in an interactive debugger they would be links to the
# matching inspection command.
_POINTER_KINDS = frozenset(
    {ColumnKind.POINTER, ColumnKind.DUMP_OBJ, ColumnKind.DUMP_HEAP, ColumnKind.LIST_NEAR_OBJ}
)
_RIGHT_ALIGNED = _POINTER_KINDS | {
    ColumnKind.HEX_VALUE,
    ColumnKind.INTEGER,
    ColumnKind.INTEGER_WITHOUT_COMMAS,
}

_DEFAULT_WIDTHS = {
    ColumnKind.POINTER: 16,
    ColumnKind.DUMP_OBJ: 16,
    ColumnKind.DUMP_HEAP: 16,
    ColumnKind.LIST_NEAR_OBJ: 16,
    ColumnKind.HEX_VALUE: 18,
    ColumnKind.INTEGER: 14,
    ColumnKind.INTEGER_WITHOUT_COMMAS: 12,
    ColumnKind.TEXT: 12,
    ColumnKind.TYPE_NAME: 0,
}


def _render(kind: ColumnKind, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return getattr(value, "display_name", value.name)
    if kind in _POINTER_KINDS:
        return f"{value:016x}" if isinstance(value, int) else str(value)
    if kind is ColumnKind.HEX_VALUE:
        return f"0x{value:x}" if isinstance(value, int) else str(value)
    if kind is ColumnKind.INTEGER:
        return f"{int(value):,}"
    if kind is ColumnKind.INTEGER_WITHOUT_COMMAS:
        return str(int(value))
    return str(value)


def format_value(kind: ColumnKind, value: Any, width: int = 0, export: bool = False) -> str:
    """Render *value* for a column of *kind*.

    Console output pads to *width* (numbers right-aligned, text
    left-aligned); export output is never padded.  ``None`` renders empty.
    """
    text = _render(kind, value)
    if export or width <= 0:
        return text
    if kind in _RIGHT_ALIGNED:
        return text.rjust(width)
    return text.ljust(width)


@dataclass(frozen=True)
class Column:
    """A column of a report table."""

    kind: ColumnKind
    width: Optional[int] = None

    @property
    def display_width(self) -> int:
        return self.width if self.width is not None else _DEFAULT_WIDTHS[self.kind]

    @property
    def right_aligned(self) -> bool:
        return self.kind in _RIGHT_ALIGNED

    @property
    def is_numeric(self) -> bool:
        """Whether structured output emits this column's values unquoted."""
        return self.kind is ColumnKind.INTEGER_WITHOUT_COMMAS

    def format(self, value: Any, export: bool = False) -> str:
        return format_value(self.kind, value, self.display_width, export)


TEXT_COLUMN = Column(ColumnKind.TEXT)
