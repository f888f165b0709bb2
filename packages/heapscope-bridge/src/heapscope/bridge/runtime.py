"""Contract between the export pipeline and a runtime heap walker.

Anything that can walk a managed heap (a live debugger session, a dump
reader, the in-memory :class:`~heapscope.bridge.snapshot.HeapSnapshot`)
implements :class:`HeapRuntime`.  The pipeline never talks to the inspected
process through any other channel.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Optional, Protocol, runtime_checkable

from .types import (
    Generation,
    HandleDescriptor,
    ModuleDescriptor,
    ObjectDescriptor,
    SegmentInfo,
    ThinLock,
)


@runtime_checkable
class HeapRuntime(Protocol):
    """Read-only view of a managed runtime's GC heap."""

    @property
    def can_walk_heap(self) -> bool:
        """Whether the GC reports the heap as being in a walkable state."""
        ...

    @property
    def string_type_handle(self) -> int:
        ...

    @property
    def free_type_handle(self) -> int:
        ...

    def enumerate_objects(self, token: Optional[Any] = None) -> Iterator[ObjectDescriptor]:
        """Lazily yield heap objects, in ascending address order.

        The sequence is single-use.  *token* is a cancellation token the
        walker may poll between items; a walker that stops early raises
        through ``token.throw_if_cancelled()`` rather than ending quietly.
        """
        ...

    def enumerate_handles(self) -> Iterable[HandleDescriptor]:
        ...

    def enumerate_modules(self) -> Iterable[ModuleDescriptor]:
        ...

    def read_pointer(self, address: int) -> int:
        """Read a pointer-sized value; raises ``MemoryReadError`` on failure."""
        ...

    def resolve_display_name(self, type_handle: int) -> Optional[str]:
        ...

    def read_string(self, obj: ObjectDescriptor, max_length: int) -> Optional[str]:
        """Decode a string object, truncated to *max_length* characters."""
        ...

    def string_length(self, obj: ObjectDescriptor) -> int:
        ...

    def is_live(self, obj: ObjectDescriptor) -> bool:
        """Whether *obj* is reachable from a GC root."""
        ...

    def segment_of(self, address: int) -> Optional[SegmentInfo]:
        ...

    def generation_of(self, obj: ObjectDescriptor) -> Generation:
        ...

    def thin_lock_of(self, obj: ObjectDescriptor) -> Optional[ThinLock]:
        ...
