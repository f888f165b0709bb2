"""heapscope.bridge -- the boundary between the export pipeline and a heap walker.

This package defines the descriptors a runtime heap walker produces, the
:class:`HeapRuntime` protocol the pipeline consumes, and
:class:`HeapSnapshot`, an in-memory runtime loadable from JSON.

Example::

    from heapscope.bridge import HeapSnapshot

    snapshot = HeapSnapshot.from_json("heap.json")
    for obj in snapshot.enumerate_objects():
        print(hex(obj.address), obj.type_name, obj.size)
"""

from __future__ import annotations

from .memory import (
    display_name_of,
    parse_address,
    resolve_or_recover_type_handle,
    type_name_of,
    unknown_type_name,
)
from .runtime import HeapRuntime
from .snapshot import HeapSnapshot
from .types import (
    Generation,
    HandleDescriptor,
    HandleKind,
    MemoryReadError,
    ModuleDescriptor,
    ObjectDescriptor,
    SegmentInfo,
    SegmentKind,
    ThinLock,
)

__all__ = [
    # Runtimes
    "HeapRuntime",
    "HeapSnapshot",
    # Types
    "Generation",
    "HandleDescriptor",
    "HandleKind",
    "MemoryReadError",
    "ModuleDescriptor",
    "ObjectDescriptor",
    "SegmentInfo",
    "SegmentKind",
    "ThinLock",
    # Memory utilities
    "display_name_of",
    "parse_address",
    "resolve_or_recover_type_handle",
    "type_name_of",
    "unknown_type_name",
]
