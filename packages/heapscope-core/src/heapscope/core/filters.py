"""Lazy, order-preserving filters over the heap object stream."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from heapscope.bridge.memory import parse_address, resolve_or_recover_type_handle, type_name_of
from heapscope.bridge.runtime import HeapRuntime
from heapscope.bridge.types import Generation, ObjectDescriptor
from heapscope.core.errors import ConfigurationError
from heapscope.core.types.config import HeapFilterOptions, StringExportOptions, parse_generation

logger = logging.getLogger(__name__)

Predicate = Callable[[ObjectDescriptor], bool]


def _parse_hex(text: str, what: str) -> int:
    try:
        return parse_address(text)
    except ValueError:
        raise ConfigurationError(f"Invalid {what} '{text}' specified.") from None


class ObjectFilterChain:
    """A sequence of predicates applied lazily to an object stream.

    An object survives when every predicate accepts it.  Predicates run in
    the order they were added and evaluation stops at the first rejection,
    so cheap checks belong before ones that consult the runtime.
    :meth:`from_options` adds them in that order.
    """

    def __init__(self) -> None:
        self._predicates: List[Tuple[str, Predicate]] = []

    def __len__(self) -> int:
        return len(self._predicates)

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self._predicates]

    def add(self, name: str, predicate: Predicate) -> ObjectFilterChain:
        self._predicates.append((name, predicate))
        return self

    def accepts(self, obj: ObjectDescriptor) -> bool:
        for _, predicate in self._predicates:
            if not predicate(obj):
                return False
        return True

    def apply(self, objects: Iterable[ObjectDescriptor]) -> Iterator[ObjectDescriptor]:
        """Yield the objects every predicate accepts, in stream order."""
        if not self._predicates:
            yield from objects
            return
        for obj in objects:
            if self.accepts(obj):
                yield obj

    # -- predicates --------------------------------------------------------

    def by_size(self, min_size: int = 0, max_size: int = 0) -> ObjectFilterChain:
        """Keep valid objects with ``min_size <= size <= max_size``.

        A bound of 0 leaves that side open.  Nothing is added when both are 0.
        """
        if not min_size and not max_size:
            return self

        def predicate(obj: ObjectDescriptor) -> bool:
            if not obj.is_valid:
                return False
            if min_size and obj.size < min_size:
                return False
            if max_size and obj.size > max_size:
                return False
            return True

        return self.add("size", predicate)

    def by_address_range(self, start: int, end: Optional[int] = None) -> ObjectFilterChain:
        """Keep objects at ``start <= address < end`` (open ended without *end*)."""
        if end is None:
            return self.add("address_range", lambda obj: obj.address >= start)
        return self.add("address_range", lambda obj: start <= obj.address < end)

    def by_heap_index(self, runtime: HeapRuntime, heap_index: int) -> ObjectFilterChain:
        def predicate(obj: ObjectDescriptor) -> bool:
            segment = runtime.segment_of(obj.address)
            return segment is not None and segment.heap_index == heap_index

        return self.add("heap_index", predicate)

    def by_segment(self, runtime: HeapRuntime, segment_address: int) -> ObjectFilterChain:
        """Keep objects inside the segment containing *segment_address*."""
        segment = runtime.segment_of(segment_address)
        if segment is None:
            raise ConfigurationError(f"Invalid heap segment address '{segment_address:x}' specified.")
        return self.add("segment", lambda obj: segment.contains(obj.address))

    def by_generation(self, runtime: HeapRuntime, generation: Generation) -> ObjectFilterChain:
        return self.add("generation", lambda obj: runtime.generation_of(obj) is generation)

    def by_type_handle(self, runtime: HeapRuntime, type_handle: int) -> ObjectFilterChain:
        """Keep objects of exactly *type_handle*.

        Objects without a resolved type are matched on the type handle read
        from their first pointer-sized slot; unreadable ones are dropped.
        """
        return self.add(
            "type_handle",
            lambda obj: resolve_or_recover_type_handle(runtime, obj) == type_handle,
        )

    def by_type_prefix(self, runtime: HeapRuntime, prefix: str) -> ObjectFilterChain:
        """Keep objects whose resolved type name starts with *prefix* (ordinal match).

        Objects with no resolvable name never match.
        """

        def matches(obj: ObjectDescriptor) -> bool:
            name = type_name_of(runtime, obj)
            return name is not None and name.startswith(prefix)

        return self.add("type_prefix", matches)

    def by_liveness(self, runtime: HeapRuntime, live: bool = True) -> ObjectFilterChain:
        """Keep reachable objects, or unreachable ones when *live* is false."""
        if live:
            return self.add("live", runtime.is_live)
        return self.add("dead", lambda obj: not runtime.is_live(obj))

    # -- construction ------------------------------------------------------

    @classmethod
    def from_options(
        cls,
        runtime: HeapRuntime,
        options: HeapFilterOptions,
        type_handle: Optional[int] = None,
    ) -> ObjectFilterChain:
        """Build a chain from report options.

        *type_handle* overrides ``options.method_table`` (string and free
        object reports pin the type).  Every option is validated here, so a
        malformed value raises :class:`ConfigurationError` before any object
        is read.
        """
        if options.live and options.dead:
            raise ConfigurationError("Only one of live or dead objects can be selected.")

        start, end = _parse_memory_range(options.memory_range)
        segment = _parse_hex(options.segment, "heap segment address") if options.segment else None
        generation = parse_generation(options.generation) if options.generation else None
        if type_handle is None and options.method_table:
            type_handle = _parse_hex(options.method_table, "MethodTable")

        chain = cls()
        chain.by_size(options.min_size, options.max_size)
        if start is not None:
            chain.by_address_range(start, end)
        if options.heap_index != -1:
            chain.by_heap_index(runtime, options.heap_index)
        if segment is not None:
            chain.by_segment(runtime, segment)
        if generation is not None:
            chain.by_generation(runtime, generation)
        if type_handle is not None:
            chain.by_type_handle(runtime, type_handle)
        if options.type_prefix is not None:
            chain.by_type_prefix(runtime, options.type_prefix)
        if options.live or options.dead:
            chain.by_liveness(runtime, live=options.live)
        logger.debug("Object filters: %s", ", ".join(chain.names) or "none")
        return chain


def _parse_memory_range(arguments: List[str]) -> Tuple[Optional[int], Optional[int]]:
    if not arguments:
        return None, None
    if len(arguments) > 2:
        for argument in arguments:
            if argument.startswith(("-", "/")):
                raise ConfigurationError(f"Invalid argument '{argument}' specified.")
        raise ConfigurationError("Too many arguments specified.")
    start = _parse_hex(arguments[0], "start address")
    end = _parse_hex(arguments[1], "end address") if len(arguments) > 1 else None
    if end is not None and end < start:
        raise ConfigurationError(f"End address '{arguments[1]}' is below start address '{arguments[0]}'.")
    return start, end


def _upper_per_char(value: str) -> str:
    """Uppercase each character on its own, keeping the string length.

    Characters whose uppercase form is longer than one character (``ß``)
    are kept as they are, so ``straße`` does not equal ``STRASSE``.
    """
    chars = []
    for ch in value:
        upper = ch.upper()
        chars.append(upper if len(upper) == 1 else ch)
    return "".join(chars)


def string_matcher(options: StringExportOptions) -> Callable[[str], bool]:
    """Build a predicate over decoded string values.

    Every configured matcher (prefix, suffix, substring, exact) must accept
    the value.  With ``ignore_case`` both sides are uppercased character
    by character first.
    """
    fold: Callable[[str], str] = _upper_per_char if options.ignore_case else str
    checks: List[Callable[[str], bool]] = []
    if options.starts_with:
        prefix = fold(options.starts_with)
        checks.append(lambda value: value.startswith(prefix))
    if options.ends_with:
        suffix = fold(options.ends_with)
        checks.append(lambda value: value.endswith(suffix))
    if options.contains:
        needle = fold(options.contains)
        checks.append(lambda value: needle in value)
    if options.exact:
        exact = fold(options.exact)
        checks.append(lambda value: value == exact)

    def matches(value: str) -> bool:
        folded = fold(value)
        return all(check(folded) for check in checks)

    return matches
