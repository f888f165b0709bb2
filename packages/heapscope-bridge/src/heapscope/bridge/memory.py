"""Memory helpers layered on top of :class:`~heapscope.bridge.runtime.HeapRuntime`.

All functions accept the runtime as their first argument.
"""

from __future__ import annotations

import logging
import string
from typing import TYPE_CHECKING, Optional

from .types import MemoryReadError, ObjectDescriptor

if TYPE_CHECKING:
    from .runtime import HeapRuntime

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Type handle recovery
# ---------------------------------------------------------------------------

def resolve_or_recover_type_handle(
    runtime: HeapRuntime, obj: ObjectDescriptor
) -> Optional[int]:
    """Return the type handle of *obj*.

    Uses the resolved type handle when the walker produced one.  Otherwise
    the first pointer-sized value of the object (its type handle slot) is
    read from memory.  Returns ``None`` when that read fails too.
    """
    if obj.type_handle is not None:
        return obj.type_handle
    try:
        return runtime.read_pointer(obj.address)
    except MemoryReadError:
        logger.debug("Unable to recover type handle of object at %#x", obj.address)
        return None


def unknown_type_name(type_handle: int) -> str:
    """Placeholder display name for a type that could not be resolved."""
    return f"<unknown_type_{type_handle:x}>"


def type_name_of(runtime: HeapRuntime, obj: ObjectDescriptor) -> Optional[str]:
    """Resolved type name of *obj*, or ``None`` when no name is known.

    Falls back to the runtime's name for the (possibly recovered) type
    handle, the same lookup the statistics reports use for display.
    """
    if obj.type_name:
        return obj.type_name
    type_handle = resolve_or_recover_type_handle(runtime, obj)
    if type_handle is None:
        return None
    return runtime.resolve_display_name(type_handle)


def display_name_of(
    runtime: HeapRuntime, obj: ObjectDescriptor, type_handle: Optional[int]
) -> str:
    """Best display name for *obj*, falling back to a placeholder."""
    if obj.type_name:
        return obj.type_name
    if type_handle is None:
        return unknown_type_name(0)
    return runtime.resolve_display_name(type_handle) or unknown_type_name(type_handle)


# ---------------------------------------------------------------------------
# Address parsing
# ---------------------------------------------------------------------------

def parse_address(text: str) -> int:
    """Parse a hexadecimal address as typed in a debugger.

    Accepts an optional ``0x`` prefix and the ``` ` ``` digit-group
    separator used by WinDbg (``00007ff8`a1b2c3d0``).  Raises ``ValueError``
    when *text* is not a hexadecimal number.
    """
    value = text.strip().replace("`", "")
    if value[:2].lower() == "0x":
        value = value[2:]
    if not value or any(ch not in string.hexdigits for ch in value):
        raise ValueError(f"Invalid address {text!r}")
    return int(value, 16)
