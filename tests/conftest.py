"""Root conftest: shared fixtures for the entire test suite."""

from __future__ import annotations

import io
from types import SimpleNamespace

import pytest
from rich.console import Console

from heapscope.bridge.snapshot import HeapSnapshot
from heapscope.bridge.types import (
    HandleDescriptor,
    HandleKind,
    ModuleDescriptor,
    ObjectDescriptor,
    SegmentInfo,
    SegmentKind,
    ThinLock,
)
from heapscope.core.output.writer import ConsoleOrFileWriter

STRING_MT = 0x7FF8A1B20000
FREE_MT = 0x7FF8A1B10000
T_MT = 0x7FF8A1B30000
U_MT = 0x7FF8A1B40000

TYPE_NAMES = {
    STRING_MT: "System.String",
    FREE_MT: "Free",
    T_MT: "T",
    U_MT: "U",
}


def make_object(address, type_handle, size, **kwargs):
    """ObjectDescriptor with its type name filled in from TYPE_NAMES."""
    kwargs.setdefault("type_name", TYPE_NAMES.get(type_handle))
    return ObjectDescriptor(address=address, type_handle=type_handle, size=size, **kwargs)


# ---------------------------------------------------------------------------
# Type handles
# ---------------------------------------------------------------------------

@pytest.fixture()
def mt():
    """Type handles used by the sample heaps."""
    return SimpleNamespace(string=STRING_MT, free=FREE_MT, t=T_MT, u=U_MT, names=dict(TYPE_NAMES))


@pytest.fixture()
def make_obj():
    return make_object


# ---------------------------------------------------------------------------
# Sample heap
# ---------------------------------------------------------------------------

@pytest.fixture()
def sample_objects():
    """Ten objects in ascending address order.

    Two segments: generation 0 on heap 0 and a large object segment on
    heap 1.  The object at 0x10e8 has no resolved type; its type handle
    slot in memory holds U's.
    """
    return [
        make_object(0x1000, T_MT, 16),
        make_object(0x1010, STRING_MT, 32),
        make_object(0x1030, U_MT, 8),
        make_object(0x1038, T_MT, 32),
        make_object(0x1058, STRING_MT, 32),
        make_object(0x1078, T_MT, 48),
        make_object(0x10A8, STRING_MT, 40),
        make_object(0x10D0, FREE_MT, 24, is_free=True),
        ObjectDescriptor(address=0x10E8, type_handle=None, size=24),
        make_object(0x210000, T_MT, 100000),
    ]


@pytest.fixture()
def sample_heap(sample_objects):
    """A HeapSnapshot with objects, handles, modules, strings and locks."""
    by_address = {obj.address: obj for obj in sample_objects}
    return HeapSnapshot(
        sample_objects,
        handles=[
            HandleDescriptor(0x100, HandleKind.STRONG, by_address[0x1000]),
            HandleDescriptor(0x108, HandleKind.WEAK_SHORT, by_address[0x1010]),
            HandleDescriptor(0x110, HandleKind.STRONG, by_address[0x210000]),
            HandleDescriptor(0x118, HandleKind.DEPENDENT, by_address[0x1030], by_address[0x1038]),
            HandleDescriptor(0x120, HandleKind.PINNED, by_address[0x1000]),
        ],
        modules=[
            ModuleDescriptor(0x7FF800000000, 4096, name="/app/App.dll", types=((T_MT, "T"), (U_MT, "U"))),
            ModuleDescriptor(
                0x7FF810000000,
                8192,
                name="C:\\dotnet\\System.Private.CoreLib.dll",
                types=((STRING_MT, "System.String"),),
            ),
            ModuleDescriptor(0x7FF820000000, 512, is_dynamic=True),
        ],
        segments=[
            SegmentInfo(0x1000, 0x100000, SegmentKind.GENERATION0, heap_index=0),
            SegmentInfo(0x200000, 0x400000, SegmentKind.LARGE, heap_index=1),
        ],
        memory={0x10E8: U_MT},
        type_names=dict(TYPE_NAMES),
        strings={0x1010: "hello", 0x1058: "hello", 0x10A8: "Hello, World"},
        live=[0x1000, 0x1010, 0x1038, 0x210000],
        thin_locks={0x1038: ThinLock(thread_address=0x5000, os_thread_id=0x1A2B, recursion=1)},
        string_type_handle=STRING_MT,
        free_type_handle=FREE_MT,
    )


# ---------------------------------------------------------------------------
# Output capture
# ---------------------------------------------------------------------------

@pytest.fixture()
def console_buffer():
    return io.StringIO()


@pytest.fixture()
def writer(console_buffer):
    """ConsoleOrFileWriter whose console output lands in ``console_buffer``."""
    console = Console(file=console_buffer, width=240, highlight=False, color_system=None)
    with ConsoleOrFileWriter(console) as w:
        yield w
