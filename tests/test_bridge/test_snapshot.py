"""Tests for HeapSnapshot: the in-memory HeapRuntime."""

from __future__ import annotations

import json

import pytest

from heapscope.bridge.runtime import HeapRuntime
from heapscope.bridge.snapshot import HeapSnapshot
from heapscope.bridge.types import (
    Generation,
    HandleKind,
    MemoryReadError,
    ObjectDescriptor,
    SegmentKind,
)
from heapscope.core.cancellation import CancellationToken
from heapscope.core.errors import OperationCancelled


SNAPSHOT_DOCUMENT = {
    "can_walk_heap": False,
    "string_type_handle": "0x7ff8a1b20000",
    "free_type_handle": "0x7ff8a1b10000",
    "types": {"0x7ff8a1b20000": "System.String", "0x7ff8a1b30000": "App.Order"},
    "objects": [
        {"address": "0x2000", "type_handle": "0x7ff8a1b20000", "size": 32},
        {"address": "0x2020", "type_handle": "0x7ff8a1b30000", "size": "0x18"},
        {"address": "0x2038", "size": 24, "is_valid": False},
    ],
    "strings": {"0x2000": "hello"},
    "memory": {"0x2038": "0x7ff8a1b30000"},
    "live": ["0x2000"],
    "segments": [
        {"start": "0x1000", "end": "0x9000", "kind": "generation1", "heap_index": 2},
    ],
    "handles": [
        {"address": "0x100", "kind": "WeakShort", "target": "0x2020"},
        {"address": "0x108", "kind": "dependent", "target": "0x2000", "dependent": "0x2020"},
        {"address": "0x110", "kind": "strong", "target": "0x8000"},
    ],
    "modules": [
        {"address": "0x7ff8a0000000", "size": 4096, "name": "App.dll", "types": {"0x7ff8a1b30000": "App.Order"}},
    ],
    "thin_locks": {"0x2020": {"thread": "0x5000", "os_thread_id": 42, "recursion": 2}},
}


def test_satisfies_runtime_protocol(sample_heap):
    assert isinstance(sample_heap, HeapRuntime)


def test_enumerate_objects_in_order(sample_heap, sample_objects):
    assert list(sample_heap.enumerate_objects()) == sample_objects


def test_enumerate_objects_raises_when_cancelled(sample_heap):
    token = CancellationToken()
    seen = []
    with pytest.raises(OperationCancelled):
        for obj in sample_heap.enumerate_objects(token):
            seen.append(obj)
            if len(seen) == 3:
                token.cancel()
    assert len(seen) == 3


def test_read_pointer(sample_heap, mt):
    assert sample_heap.read_pointer(0x10E8) == mt.u
    with pytest.raises(MemoryReadError):
        sample_heap.read_pointer(0xDEAD)


def test_read_string_truncates(sample_heap, sample_objects):
    obj = sample_objects[6]
    assert sample_heap.read_string(obj, 1024) == "Hello, World"
    assert sample_heap.read_string(obj, 5) == "Hello"
    assert sample_heap.string_length(obj) == 12


def test_read_string_unknown_object(sample_heap, sample_objects):
    assert sample_heap.read_string(sample_objects[0], 1024) is None
    assert sample_heap.string_length(sample_objects[0]) == 0


def test_generation_from_segment(sample_heap, sample_objects):
    assert sample_heap.generation_of(sample_objects[0]) is Generation.GEN0
    assert sample_heap.generation_of(sample_objects[-1]) is Generation.LARGE
    outside = ObjectDescriptor(address=0x900000, type_handle=1, size=8)
    assert sample_heap.generation_of(outside) is Generation.UNKNOWN


def test_explicit_generation_wins():
    obj = ObjectDescriptor(address=0x1000, type_handle=1, size=8)
    snapshot = HeapSnapshot([obj], generations={0x1000: Generation.GEN2})
    assert snapshot.generation_of(obj) is Generation.GEN2


def test_segment_of(sample_heap):
    assert sample_heap.segment_of(0x1000).kind is SegmentKind.GENERATION0
    assert sample_heap.segment_of(0x300000).heap_index == 1
    assert sample_heap.segment_of(0x150000) is None


def test_from_dict():
    snapshot = HeapSnapshot.from_dict(SNAPSHOT_DOCUMENT)
    assert snapshot.can_walk_heap is False
    assert snapshot.string_type_handle == 0x7FF8A1B20000

    objects = list(snapshot.enumerate_objects())
    assert [o.address for o in objects] == [0x2000, 0x2020, 0x2038]
    assert objects[0].type_name == "System.String"
    assert objects[1].size == 0x18
    assert objects[2].type_handle is None
    assert objects[2].is_valid is False
    assert snapshot.read_pointer(0x2038) == 0x7FF8A1B30000
    assert snapshot.is_live(objects[0])
    assert not snapshot.is_live(objects[1])
    assert snapshot.generation_of(objects[0]) is Generation.GEN1
    assert snapshot.segment_of(0x2000).heap_index == 2


def test_from_dict_handles():
    snapshot = HeapSnapshot.from_dict(SNAPSHOT_DOCUMENT)
    handles = list(snapshot.enumerate_handles())
    assert [h.kind for h in handles] == [HandleKind.WEAK_SHORT, HandleKind.DEPENDENT, HandleKind.STRONG]
    assert handles[0].target.type_name == "App.Order"
    assert handles[1].dependent.address == 0x2020
    # Targets missing from the object list become invalid placeholders.
    assert handles[2].target.address == 0x8000
    assert handles[2].target.is_valid is False


def test_from_dict_modules_and_locks():
    snapshot = HeapSnapshot.from_dict(SNAPSHOT_DOCUMENT)
    (module,) = list(snapshot.enumerate_modules())
    assert module.name == "App.dll"
    assert module.types == ((0x7FF8A1B30000, "App.Order"),)
    obj = list(snapshot.enumerate_objects())[1]
    lock = snapshot.thin_lock_of(obj)
    assert lock.thread_address == 0x5000
    assert lock.os_thread_id == 42
    assert lock.recursion == 2


def test_from_json(tmp_path):
    path = tmp_path / "heap.json"
    path.write_text(json.dumps(SNAPSHOT_DOCUMENT))
    snapshot = HeapSnapshot.from_json(path)
    assert len(list(snapshot.enumerate_objects())) == 3


def test_from_dict_rejects_unknown_handle_kind():
    document = {"handles": [{"address": "0x1", "kind": "sticky", "target": "0x2"}]}
    with pytest.raises(ValueError):
        HeapSnapshot.from_dict(document)
