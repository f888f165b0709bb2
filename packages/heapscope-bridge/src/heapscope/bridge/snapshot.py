"""In-memory heap runtime.

:class:`HeapSnapshot` implements :class:`~heapscope.bridge.runtime.HeapRuntime`
over plain Python data.  It backs the examples and the test-suite, and can
be loaded from a JSON document captured by an external heap walker::

    {
        "can_walk_heap": true,
        "string_type_handle": "0x7ff8a1b20000",
        "free_type_handle": "0x7ff8a1b10000",
        "types": {"0x7ff8a1b20000": "System.String"},
        "objects": [
            {"address": "0x2000", "type_handle": "0x7ff8a1b20000", "size": 32}
        ],
        "strings": {"0x2000": "hello"},
        "memory": {"0x3000": "0x7ff8a1b30000"},
        "live": ["0x2000"],
        "segments": [
            {"start": "0x1000", "end": "0x9000", "kind": "generation0"}
        ],
        "handles": [
            {"address": "0x100", "kind": "strong", "target": "0x2000"}
        ],
        "modules": [
            {"address": "0x7ff8a0000000", "size": 4096, "name": "App.dll"}
        ]
    }

Addresses may be written as hex strings or integers.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

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

logger = logging.getLogger(__name__)

_SEGMENT_GENERATIONS = {
    SegmentKind.GENERATION0: Generation.GEN0,
    SegmentKind.GENERATION1: Generation.GEN1,
    SegmentKind.GENERATION2: Generation.GEN2,
    SegmentKind.LARGE: Generation.LARGE,
    SegmentKind.PINNED: Generation.PINNED,
    SegmentKind.FROZEN: Generation.FROZEN,
}


def _int(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(str(value), 16) if str(value).lower().startswith("0x") else int(value)


class HeapSnapshot:
    """A captured heap held entirely in memory.

    Objects are yielded in the order given; callers are expected to pass them
    sorted by address, as a real heap walker would produce them.
    """

    def __init__(
        self,
        objects: Iterable[ObjectDescriptor] = (),
        *,
        handles: Iterable[HandleDescriptor] = (),
        modules: Iterable[ModuleDescriptor] = (),
        segments: Iterable[SegmentInfo] = (),
        memory: Optional[Mapping[int, int]] = None,
        type_names: Optional[Mapping[int, str]] = None,
        strings: Optional[Mapping[int, str]] = None,
        live: Iterable[int] = (),
        generations: Optional[Mapping[int, Generation]] = None,
        thin_locks: Optional[Mapping[int, ThinLock]] = None,
        string_type_handle: int = 0,
        free_type_handle: int = 0,
        can_walk_heap: bool = True,
    ) -> None:
        self._objects: List[ObjectDescriptor] = list(objects)
        self._handles: List[HandleDescriptor] = list(handles)
        self._modules: List[ModuleDescriptor] = list(modules)
        self._segments: List[SegmentInfo] = sorted(segments, key=lambda s: s.start)
        self._memory: Dict[int, int] = dict(memory or {})
        self._type_names: Dict[int, str] = dict(type_names or {})
        self._strings: Dict[int, str] = dict(strings or {})
        self._live = frozenset(live)
        self._generations: Dict[int, Generation] = dict(generations or {})
        self._thin_locks: Dict[int, ThinLock] = dict(thin_locks or {})
        self._string_type_handle = string_type_handle
        self._free_type_handle = free_type_handle
        self._can_walk_heap = can_walk_heap

    # -- properties --------------------------------------------------------

    @property
    def can_walk_heap(self) -> bool:
        return self._can_walk_heap

    @property
    def string_type_handle(self) -> int:
        return self._string_type_handle

    @property
    def free_type_handle(self) -> int:
        return self._free_type_handle

    # -- enumeration -------------------------------------------------------

    def enumerate_objects(self, token: Optional[Any] = None) -> Iterator[ObjectDescriptor]:
        for obj in self._objects:
            if token is not None:
                token.throw_if_cancelled()
            yield obj

    def enumerate_handles(self) -> Iterator[HandleDescriptor]:
        return iter(self._handles)

    def enumerate_modules(self) -> Iterator[ModuleDescriptor]:
        return iter(self._modules)

    # -- metadata ----------------------------------------------------------

    def read_pointer(self, address: int) -> int:
        try:
            return self._memory[address]
        except KeyError:
            raise MemoryReadError(address) from None

    def resolve_display_name(self, type_handle: int) -> Optional[str]:
        return self._type_names.get(type_handle)

    def read_string(self, obj: ObjectDescriptor, max_length: int) -> Optional[str]:
        value = self._strings.get(obj.address)
        if value is None:
            return None
        return value[:max_length]

    def string_length(self, obj: ObjectDescriptor) -> int:
        return len(self._strings.get(obj.address, ""))

    def is_live(self, obj: ObjectDescriptor) -> bool:
        return obj.address in self._live

    def segment_of(self, address: int) -> Optional[SegmentInfo]:
        for segment in self._segments:
            if segment.contains(address):
                return segment
        return None

    def generation_of(self, obj: ObjectDescriptor) -> Generation:
        if obj.address in self._generations:
            return self._generations[obj.address]
        segment = self.segment_of(obj.address)
        if segment is None:
            return Generation.UNKNOWN
        return _SEGMENT_GENERATIONS.get(segment.kind, Generation.UNKNOWN)

    def thin_lock_of(self, obj: ObjectDescriptor) -> Optional[ThinLock]:
        return self._thin_locks.get(obj.address)

    # -- loading -----------------------------------------------------------

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> HeapSnapshot:
        """Build a snapshot from the JSON document layout described above."""
        type_names = {_int(k): v for k, v in raw.get("types", {}).items()}
        objects = [_object_from_dict(item, type_names) for item in raw.get("objects", [])]
        by_address = {obj.address: obj for obj in objects}

        def lookup(value: Any) -> ObjectDescriptor:
            address = _int(value)
            return by_address.get(address) or ObjectDescriptor(
                address=address, type_handle=None, size=0, is_valid=False
            )

        handles = [
            HandleDescriptor(
                address=_int(item["address"]),
                kind=HandleKind.parse(item["kind"]),
                target=lookup(item["target"]),
                dependent=lookup(item["dependent"]) if item.get("dependent") is not None else None,
            )
            for item in raw.get("handles", [])
        ]
        modules = [
            ModuleDescriptor(
                address=_int(item["address"]),
                size=_int(item.get("size", 0)),
                is_dynamic=bool(item.get("is_dynamic", False)),
                name=item.get("name"),
                types=tuple((_int(mt), name) for mt, name in item.get("types", {}).items()),
            )
            for item in raw.get("modules", [])
        ]
        segments = [
            SegmentInfo(
                start=_int(item["start"]),
                end=_int(item["end"]),
                kind=SegmentKind[item.get("kind", "generation0").upper()],
                heap_index=int(item.get("heap_index", 0)),
            )
            for item in raw.get("segments", [])
        ]
        thin_locks = {
            _int(address): ThinLock(
                thread_address=_int(item["thread"]) if item.get("thread") is not None else None,
                os_thread_id=int(item.get("os_thread_id", 0)),
                recursion=int(item.get("recursion", 0)),
            )
            for address, item in raw.get("thin_locks", {}).items()
        }
        snapshot = cls(
            objects,
            handles=handles,
            modules=modules,
            segments=segments,
            memory={_int(k): _int(v) for k, v in raw.get("memory", {}).items()},
            type_names=type_names,
            strings={_int(k): v for k, v in raw.get("strings", {}).items()},
            live=[_int(a) for a in raw.get("live", [])],
            thin_locks=thin_locks,
            string_type_handle=_int(raw.get("string_type_handle", 0)),
            free_type_handle=_int(raw.get("free_type_handle", 0)),
            can_walk_heap=bool(raw.get("can_walk_heap", True)),
        )
        logger.debug(
            "Loaded snapshot: %d objects, %d handles, %d modules",
            len(objects), len(handles), len(modules),
        )
        return snapshot

    @classmethod
    def from_json(cls, path: str | Path) -> HeapSnapshot:
        """Load a snapshot from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


def _object_from_dict(item: Mapping[str, Any], type_names: Mapping[int, str]) -> ObjectDescriptor:
    type_handle = _int(item["type_handle"]) if item.get("type_handle") is not None else None
    type_name = item.get("type_name")
    if type_name is None and type_handle is not None:
        type_name = type_names.get(type_handle)
    return ObjectDescriptor(
        address=_int(item["address"]),
        type_handle=type_handle,
        size=_int(item.get("size", 0)),
        is_valid=bool(item.get("is_valid", True)),
        is_free=bool(item.get("is_free", False)),
        type_name=type_name,
    )
