"""Aggregation strategies: what a report does with each surviving item.

A strategy either streams rows straight to the table as items arrive
(``streaming = True``) or accumulates state during the pass and yields its
rows from :meth:`rows` once the stream is exhausted.  Accumulators live on
the strategy instance, so a strategy serves exactly one report run.
"""

from __future__ import annotations

import logging
import unicodedata
from collections import Counter
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from heapscope.bridge.memory import display_name_of, resolve_or_recover_type_handle
from heapscope.bridge.runtime import HeapRuntime
from heapscope.bridge.types import (
    HandleDescriptor,
    HandleKind,
    ModuleDescriptor,
    ObjectDescriptor,
    SegmentKind,
)
from heapscope.core.output.columns import Column, ColumnKind
from heapscope.core.output.table import ConsoleTable

logger = logging.getLogger(__name__)

T = TypeVar("T")
Row = Tuple[Any, ...]

STRING_REPLACEMENT_CHARACTER = "."

# Fragmentation next to objects in these segments is not reported: large,
# pinned and frozen segments are never compacted.
NON_COMPACTING_SEGMENTS = frozenset({SegmentKind.LARGE, SegmentKind.PINNED, SegmentKind.FROZEN})


class AggregationStrategy(Generic[T]):
    """Base class for report strategies over items of type ``T``."""

    streaming = False

    def __init__(self, columns: Sequence[Column], header: Sequence[str]):
        self.columns: List[Column] = list(columns)
        self.header: List[str] = list(header)

    def accept(self, item: T, table: Optional[ConsoleTable]) -> None:
        """Consume one surviving item.

        *table* is the open report table for streaming strategies and
        ``None`` for accumulating ones.
        """
        raise NotImplementedError

    def rows(self) -> Iterator[Row]:
        """Rows to render after the pass; streaming strategies yield none."""
        return iter(())


# ---------------------------------------------------------------------------
# Pass-through
# ---------------------------------------------------------------------------

class PassThroughStrategy(AggregationStrategy[T]):
    """Writes the rows derived from each item as soon as it arrives."""

    streaming = True

    def __init__(
        self,
        columns: Sequence[Column],
        header: Sequence[str],
        rows_of: Callable[[T], Iterable[Row]],
    ):
        super().__init__(columns, header)
        self._rows_of = rows_of

    def accept(self, item: T, table: Optional[ConsoleTable]) -> None:
        if table is None:
            raise RuntimeError("Streaming strategy needs its table before the first item")
        for row in self._rows_of(item):
            table.write_row(*row)


def address_listing() -> PassThroughStrategy[ObjectDescriptor]:
    return PassThroughStrategy(
        [Column(ColumnKind.DUMP_OBJ)],
        ["Address"],
        lambda obj: [(obj.address,)],
    )


def object_listing(runtime: HeapRuntime) -> PassThroughStrategy[ObjectDescriptor]:
    """Address, type handle and size of every object (size blank if invalid)."""

    def rows_of(obj: ObjectDescriptor) -> Iterable[Row]:
        type_handle = resolve_or_recover_type_handle(runtime, obj)
        return [(obj.address, type_handle, obj.size if obj.is_valid else None)]

    return PassThroughStrategy(
        [Column(ColumnKind.DUMP_OBJ), Column(ColumnKind.DUMP_HEAP), Column(ColumnKind.INTEGER_WITHOUT_COMMAS)],
        ["Address", "MT", "Size"],
        rows_of,
    )


def thin_lock_listing(runtime: HeapRuntime) -> PassThroughStrategy[ObjectDescriptor]:
    """Objects whose header holds a thin lock, with the owning thread."""

    def rows_of(obj: ObjectDescriptor) -> Iterable[Row]:
        lock = runtime.thin_lock_of(obj)
        if lock is None:
            return ()
        return [(obj.address, lock.thread_address, lock.os_thread_id, lock.recursion)]

    return PassThroughStrategy(
        [
            Column(ColumnKind.DUMP_OBJ),
            Column(ColumnKind.POINTER),
            Column(ColumnKind.HEX_VALUE),
            Column(ColumnKind.INTEGER_WITHOUT_COMMAS),
        ],
        ["Object", "Thread", "OSID", "Recursion"],
        rows_of,
    )


def handle_listing() -> PassThroughStrategy[HandleDescriptor]:
    def rows_of(handle: HandleDescriptor) -> Iterable[Row]:
        target = handle.target
        return [(
            handle.address,
            handle.kind,
            target.address,
            target.size,
            handle.dependent.address if handle.dependent is not None else None,
            target.type_name,
        )]

    return PassThroughStrategy(
        [
            Column(ColumnKind.POINTER),
            Column(ColumnKind.TEXT),
            Column(ColumnKind.DUMP_OBJ),
            Column(ColumnKind.INTEGER_WITHOUT_COMMAS),
            Column(ColumnKind.POINTER),
            Column(ColumnKind.TYPE_NAME),
        ],
        ["Handle", "Type", "Object", "Size", "Data", "ClassName"],
        rows_of,
    )


def module_listing() -> PassThroughStrategy[ModuleDescriptor]:
    return PassThroughStrategy(
        [
            Column(ColumnKind.DUMP_OBJ),
            Column(ColumnKind.INTEGER_WITHOUT_COMMAS),
            Column(ColumnKind.INTEGER),
            Column(ColumnKind.TYPE_NAME),
        ],
        ["Address", "Size", "Dynamic", "ModuleName"],
        lambda module: [(module.address, module.size, 1 if module.is_dynamic else 0, module.name or "<N/A>")],
    )


def module_type_listing() -> PassThroughStrategy[ModuleDescriptor]:
    """One row per loaded type of each module."""
    return PassThroughStrategy(
        [Column(ColumnKind.DUMP_OBJ), Column(ColumnKind.DUMP_HEAP), Column(ColumnKind.TYPE_NAME)],
        ["Module", "MT", "ClassName"],
        lambda module: [(module.address, mt, name) for mt, name in module.types],
    )


def string_listing(
    runtime: HeapRuntime,
    max_length: int,
    matches: Callable[[str], bool],
) -> PassThroughStrategy[ObjectDescriptor]:
    """String objects whose decoded value satisfies *matches*."""

    def rows_of(obj: ObjectDescriptor) -> Iterable[Row]:
        value = runtime.read_string(obj, max_length)
        if value is not None and not matches(value):
            return ()
        return [(obj.address, runtime.string_length(obj), obj.size, value)]

    return PassThroughStrategy(
        [
            Column(ColumnKind.DUMP_OBJ),
            Column(ColumnKind.INTEGER_WITHOUT_COMMAS),
            Column(ColumnKind.INTEGER_WITHOUT_COMMAS),
            Column(ColumnKind.TEXT),
        ],
        ["Address", "Length", "Size", "Text"],
        rows_of,
    )


# ---------------------------------------------------------------------------
# Keyed statistics
# ---------------------------------------------------------------------------

@dataclass
class TypeAggregate:
    """Running count and size of the objects of one type."""

    type_handle: int
    count: int = 0
    cumulative_size: int = 0
    display_name: str = ""


class TypeStatisticsStrategy(AggregationStrategy[T]):
    """Buckets items by type handle.

    Works for heap objects directly and for handles through *object_of*,
    which maps an item to the object whose type is counted.  Rows come out
    ordered by cumulative size, ties in discovery order.
    """

    def __init__(
        self,
        runtime: HeapRuntime,
        object_of: Callable[[T], ObjectDescriptor] = lambda item: item,  # type: ignore[assignment,return-value]
    ):
        super().__init__(
            [
                Column(ColumnKind.DUMP_HEAP),
                Column(ColumnKind.INTEGER_WITHOUT_COMMAS),
                Column(ColumnKind.INTEGER_WITHOUT_COMMAS),
                Column(ColumnKind.TYPE_NAME),
            ],
            ["MT", "Count", "TotalSize", "ClassName"],
        )
        self._runtime = runtime
        self._object_of = object_of
        self._aggregates: Dict[int, TypeAggregate] = {}

    @property
    def aggregates(self) -> List[TypeAggregate]:
        return list(self._aggregates.values())

    def accept(self, item: T, table: Optional[ConsoleTable]) -> None:
        obj = self._object_of(item)
        type_handle = resolve_or_recover_type_handle(self._runtime, obj)
        key = type_handle if type_handle is not None else 0
        aggregate = self._aggregates.get(key)
        if aggregate is None:
            aggregate = TypeAggregate(
                type_handle=key,
                display_name=display_name_of(self._runtime, obj, type_handle),
            )
            self._aggregates[key] = aggregate
        aggregate.count += 1
        aggregate.cumulative_size += obj.size if obj.is_valid else 0

    def rows(self) -> Iterator[Row]:
        for aggregate in sorted(self._aggregates.values(), key=lambda a: a.cumulative_size):
            yield aggregate.type_handle, aggregate.count, aggregate.cumulative_size, aggregate.display_name


class HandleKindTotalsStrategy(AggregationStrategy[HandleDescriptor]):
    """Number of handles of each kind, in :class:`HandleKind` order."""

    def __init__(self) -> None:
        super().__init__(
            [Column(ColumnKind.TEXT), Column(ColumnKind.INTEGER_WITHOUT_COMMAS)],
            ["Type", "Count"],
        )
        self._counts: Counter[HandleKind] = Counter()

    def accept(self, item: HandleDescriptor, table: Optional[ConsoleTable]) -> None:
        self._counts[item.kind] += 1

    def rows(self) -> Iterator[Row]:
        for kind in HandleKind:
            if kind in self._counts:
                yield kind, self._counts[kind]


# ---------------------------------------------------------------------------
# String value statistics
# ---------------------------------------------------------------------------

def _is_letter_or_digit(ch: str) -> bool:
    category = unicodedata.category(ch)
    return category[0] == "L" or category == "Nd"


def sanitize_text(value: str) -> str:
    """Make a string value safe to show on one report line.

    Values made only of letters and digits are returned unchanged.
    Otherwise every character that is not a letter, digit, punctuation or
    space is replaced with :data:`STRING_REPLACEMENT_CHARACTER`.
    """
    if all(_is_letter_or_digit(ch) for ch in value):
        return value
    return "".join(
        ch if ch == " " or _is_letter_or_digit(ch) or unicodedata.category(ch)[0] == "P"
        else STRING_REPLACEMENT_CHARACTER
        for ch in value
    )


@dataclass
class ValueAggregate:
    """Occurrences of one (raw value, object size) pair."""

    value: Optional[str]
    size: int
    count: int = 0

    @property
    def total_size(self) -> int:
        return self.count * self.size

    @property
    def normalized_value(self) -> str:
        return sanitize_text(self.value or "")


class StringStatisticsStrategy(AggregationStrategy[ObjectDescriptor]):
    """Counts duplicate string values.

    Grouping uses the raw decoded value; sanitising happens only when rows
    are rendered, so values that sanitise alike are still counted apart.
    """

    def __init__(self, runtime: HeapRuntime, max_length: int = 1024):
        super().__init__(
            [
                Column(ColumnKind.INTEGER_WITHOUT_COMMAS),
                Column(ColumnKind.INTEGER_WITHOUT_COMMAS),
                Column(ColumnKind.TEXT),
            ],
            ["Count", "TotalSize", "Text"],
        )
        self._runtime = runtime
        self._max_length = max_length
        self._aggregates: Dict[Tuple[Optional[str], int], ValueAggregate] = {}

    @property
    def aggregates(self) -> List[ValueAggregate]:
        return list(self._aggregates.values())

    def accept(self, item: ObjectDescriptor, table: Optional[ConsoleTable]) -> None:
        size = item.size if item.is_valid else 0
        value = self._runtime.read_string(item, self._max_length)
        key = (value, size)
        aggregate = self._aggregates.get(key)
        if aggregate is None:
            aggregate = self._aggregates[key] = ValueAggregate(value=value, size=size)
        aggregate.count += 1

    def rows(self) -> Iterator[Row]:
        for aggregate in sorted(self._aggregates.values(), key=lambda a: a.total_size):
            yield aggregate.count, aggregate.total_size, aggregate.normalized_value


# ---------------------------------------------------------------------------
# Fragmentation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FragmentationBlock:
    """A large free block immediately followed by a live object."""

    free_address: int
    free_size: int
    next_address: int
    next_type_name: str


class FragmentationStrategy(AggregationStrategy[ObjectDescriptor]):
    """Single-pass detector of free blocks pinned in place by the next object.

    Holds at most one candidate: the last free block of at least
    *min_block_size* bytes.  The candidate is confirmed when the very next
    object is valid, not free, starts exactly where the free block ends and
    lives in a compacting segment.  Any other object clears it.  Objects
    must arrive in ascending address order.
    """

    def __init__(self, runtime: HeapRuntime, min_block_size: int = 512 * 1024):
        super().__init__(
            [
                Column(ColumnKind.LIST_NEAR_OBJ),
                Column(ColumnKind.INTEGER_WITHOUT_COMMAS),
                Column(ColumnKind.DUMP_OBJ),
                Column(ColumnKind.TYPE_NAME),
            ],
            ["Address", "Size", "FollowedBy", "ClassName"],
        )
        self._runtime = runtime
        self._min_block_size = min_block_size
        self._candidate: Optional[ObjectDescriptor] = None
        self.blocks: List[FragmentationBlock] = []

    def accept(self, item: ObjectDescriptor, table: Optional[ConsoleTable]) -> None:
        candidate = self._candidate
        if (
            candidate is not None
            and item.is_valid
            and not item.is_free
            and candidate.address + candidate.size == item.address
        ):
            segment = self._runtime.segment_of(item.address)
            if segment is not None and segment.kind not in NON_COMPACTING_SEGMENTS:
                self.blocks.append(FragmentationBlock(
                    free_address=candidate.address,
                    free_size=candidate.size,
                    next_address=item.address,
                    next_type_name=display_name_of(self._runtime, item, item.type_handle),
                ))
        size = item.size if item.is_valid else 0
        if item.is_free and size >= self._min_block_size:
            self._candidate = item
        else:
            self._candidate = None

    def rows(self) -> Iterator[Row]:
        for block in self.blocks:
            yield block.free_address, block.free_size, block.next_address, block.next_type_name
