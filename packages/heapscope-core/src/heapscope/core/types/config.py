from __future__ import annotations

import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, Field

from heapscope.bridge.types import Generation, HandleKind
from heapscope.core.errors import ConfigurationError

E = TypeVar("E", bound=Enum)


class OutputType(Enum):
    """Report encodings."""

    CONSOLE = "Console"
    CSV = "CSV"
    TAB = "Tab"
    JSON = "Json"


class HeapDisplayType(Enum):
    """Report shapes available for heap object exports."""

    ADDRESS = "Address"
    THIN_LOCK = "ThinLock"
    STRING = "String"
    STRING_SUMMARY = "StringSummary"
    FREE = "Free"
    FREE_SUMMARY = "FreeSummary"
    OBJECT = "Object"
    OBJECT_SUMMARY = "ObjectSummary"
    OBJECT_FRAGMENTATION_SUMMARY = "ObjectFragmentationSummary"


class HandleDisplayType(Enum):
    """Report shapes available for GC handle exports."""

    HANDLES = "Handles"
    STATISTICS = "Statistics"
    TOTALS = "Totals"


_OUTPUT_TYPE_ALIASES = {
    "commadelimited": OutputType.CSV,
    "tabdelimited": OutputType.TAB,
    "structured": OutputType.JSON,
}

_GENERATION_NAMES = {
    "gen0": Generation.GEN0,
    "gen1": Generation.GEN1,
    "gen2": Generation.GEN2,
    "loh": Generation.LARGE,
    "large": Generation.LARGE,
    "poh": Generation.PINNED,
    "pinned": Generation.PINNED,
    "foh": Generation.FROZEN,
    "frozen": Generation.FROZEN,
}


def _parse_enum(enum_type: Type[E], name: str, what: str) -> E:
    key = name.strip().lower()
    for member in enum_type:
        if key in (str(member.value).lower(), member.name.lower()):
            return member
    raise ConfigurationError(f"Invalid {what} '{name}' specified.")


def parse_output_type(name: str) -> OutputType:
    """Case-insensitive lookup of an output type, including long-form aliases."""
    alias = _OUTPUT_TYPE_ALIASES.get(name.strip().lower())
    if alias is not None:
        return alias
    return _parse_enum(OutputType, name, "output type")


def parse_heap_display_type(name: str) -> HeapDisplayType:
    return _parse_enum(HeapDisplayType, name, "display type")


def parse_handle_display_type(name: str) -> HandleDisplayType:
    return _parse_enum(HandleDisplayType, name, "display type")


def parse_handle_kind(name: str) -> HandleKind:
    try:
        return HandleKind.parse(name)
    except ValueError:
        raise ConfigurationError(f"Invalid GC Handle kind '{name}' specified.") from None


def parse_generation(name: str) -> Generation:
    try:
        return _GENERATION_NAMES[name.strip().lower()]
    except KeyError:
        raise ConfigurationError(
            f"Invalid GC generation {name} (only gen0, gen1, gen2, loh (large), "
            "poh (pinned) and foh (frozen) are supported) specified."
        ) from None


class ExportOptions(BaseModel):
    """Options shared by every report family."""

    output_type: str = "Console"
    output_file: Optional[str] = None

    def resolved_output_type(self) -> OutputType:
        return parse_output_type(self.output_type)


class HeapFilterOptions(BaseModel):
    """Object filters for heap walks.

    Sizes of 0 mean "unbounded"; ``heap_index`` of -1 means every heap.
    Addresses are hexadecimal strings.
    """

    method_table: Optional[str] = None
    type_prefix: Optional[str] = None
    min_size: int = Field(default=0, ge=0)
    max_size: int = Field(default=0, ge=0)
    live: bool = False
    dead: bool = False
    heap_index: int = Field(default=-1, ge=-1)
    segment: Optional[str] = None
    generation: Optional[str] = None
    memory_range: List[str] = Field(default_factory=list)


class HeapExportOptions(ExportOptions, HeapFilterOptions):
    """Options for heap object exports."""

    display_type: str = "ObjectSummary"
    max_string_length: int = Field(default=1024, gt=0)
    min_fragmentation_block_size: int = Field(default=512 * 1024, ge=0)
    ignore_gc_state: bool = False

    def resolved_display_type(self) -> HeapDisplayType:
        return parse_heap_display_type(self.display_type)


class GCHandleExportOptions(ExportOptions):
    """Options for GC handle exports."""

    display_type: str = "Statistics"
    handle_kind: Optional[str] = None

    def resolved_display_type(self) -> HandleDisplayType:
        return parse_handle_display_type(self.display_type)


class ModuleExportOptions(ExportOptions):
    """Options for managed module exports."""

    name: Optional[str] = None
    types: bool = False


class StringExportOptions(ExportOptions):
    """Options for string exports.

    Every configured matcher must accept a string for it to be reported.
    """

    starts_with: Optional[str] = None
    ends_with: Optional[str] = None
    contains: Optional[str] = None
    exact: Optional[str] = None
    ignore_case: bool = False
    max_string_length: int = Field(default=1024, gt=0)
    ignore_gc_state: bool = False


class HeapscopeConfig(BaseModel):
    """Top-level heapscope configuration: per-report defaults."""

    heap: HeapExportOptions = Field(default_factory=HeapExportOptions)
    handles: GCHandleExportOptions = Field(default_factory=GCHandleExportOptions)
    modules: ModuleExportOptions = Field(default_factory=ModuleExportOptions)
    strings: StringExportOptions = Field(default_factory=StringExportOptions)
    verbose: bool = False


def load_config(path: Optional[str] = None) -> HeapscopeConfig:
    """Load configuration from a heapscope.toml file, falling back to defaults.

    Uses ``tomllib`` on Python 3.11+ and ``tomli`` on older versions.
    """

    if sys.version_info >= (3, 11):
        import tomllib
    else:
        import tomli as tomllib  # type: ignore[no-redef]

    config_path = Path(path) if path else Path("heapscope.toml")

    if not config_path.exists():
        return HeapscopeConfig()

    with open(config_path, "rb") as f:
        raw = tomllib.load(f)

    return HeapscopeConfig(**raw)
