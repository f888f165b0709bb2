"""Bridge-level types for the heap inspection layer.

Provides enums and dataclasses that describe what a runtime heap walker
hands to the export pipeline: objects, GC handles, segments and modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Tuple


class HandleKind(Enum):
    """Strength/kind of a GC handle.

    Declaration order is the order used when handle totals are reported.
    """

    WEAK_SHORT = auto()
    WEAK_LONG = auto()
    STRONG = auto()
    PINNED = auto()
    REF_COUNTED = auto()
    DEPENDENT = auto()
    ASYNC_PINNED = auto()
    SIZED_REF = auto()
    WEAK_WINRT = auto()

    @property
    def display_name(self) -> str:
        """Return the CamelCase name used in reports (``WeakShort``)."""
        return _HANDLE_KIND_NAMES[self]

    @classmethod
    def parse(cls, name: str) -> HandleKind:
        """Look up a kind by report name or member name, ignoring case.

        Raises ``ValueError`` for unknown names.
        """
        key = name.strip().replace("_", "").lower()
        for kind in cls:
            if kind.name.replace("_", "").lower() == key:
                return kind
        raise ValueError(f"Unknown handle kind {name!r}")


_HANDLE_KIND_NAMES = {
    HandleKind.WEAK_SHORT: "WeakShort",
    HandleKind.WEAK_LONG: "WeakLong",
    HandleKind.STRONG: "Strong",
    HandleKind.PINNED: "Pinned",
    HandleKind.REF_COUNTED: "RefCounted",
    HandleKind.DEPENDENT: "Dependent",
    HandleKind.ASYNC_PINNED: "AsyncPinned",
    HandleKind.SIZED_REF: "SizedRef",
    HandleKind.WEAK_WINRT: "WeakWinRT",
}


class SegmentKind(Enum):
    """Kind of GC heap segment an address belongs to."""

    EPHEMERAL = auto()
    GENERATION0 = auto()
    GENERATION1 = auto()
    GENERATION2 = auto()
    LARGE = auto()
    PINNED = auto()
    FROZEN = auto()


class Generation(Enum):
    """GC generation of a heap object."""

    GEN0 = auto()
    GEN1 = auto()
    GEN2 = auto()
    LARGE = auto()
    PINNED = auto()
    FROZEN = auto()
    UNKNOWN = auto()


@dataclass(frozen=True)
class ObjectDescriptor:
    """A single entry of the heap object stream.

    ``type_handle`` is ``None`` when the walker could not resolve the
    object's type; ``size`` is only meaningful when ``is_valid`` is set.
    """

    address: int
    type_handle: Optional[int]
    size: int
    is_valid: bool = True
    is_free: bool = False
    type_name: Optional[str] = None

    @property
    def end(self) -> int:
        """Address one past the last byte of the object."""
        return self.address + self.size


@dataclass(frozen=True)
class HandleDescriptor:
    """A GC handle and the object(s) it keeps track of."""

    address: int
    kind: HandleKind
    target: ObjectDescriptor
    dependent: Optional[ObjectDescriptor] = None


@dataclass(frozen=True)
class SegmentInfo:
    """A contiguous GC heap segment."""

    start: int
    end: int
    kind: SegmentKind
    heap_index: int = 0

    def contains(self, address: int) -> bool:
        return self.start <= address < self.end


@dataclass(frozen=True)
class ThinLock:
    """Thin lock information stored in an object header."""

    thread_address: Optional[int]
    os_thread_id: int
    recursion: int


@dataclass(frozen=True)
class ModuleDescriptor:
    """A managed module loaded into the runtime.

    ``types`` holds ``(type_handle, type_name)`` pairs for the types the
    module defines that the runtime has already loaded.
    """

    address: int
    size: int
    is_dynamic: bool = False
    name: Optional[str] = None
    types: Tuple[Tuple[int, str], ...] = field(default_factory=tuple)


class MemoryReadError(RuntimeError):
    """Raised when memory at an address of the inspected process is unreadable."""

    def __init__(self, address: int, size: int = 8) -> None:
        super().__init__(f"Failed to read {size} bytes at {address:#x}")
        self.address = address
        self.size = size
