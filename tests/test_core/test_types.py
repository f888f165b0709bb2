"""Tests for heapscope.core types: option parsing, results and errors."""

from __future__ import annotations

import pytest

from heapscope.bridge.types import Generation, HandleKind
from heapscope.core.errors import (
    ConfigurationError,
    HeapscopeError,
    OperationCancelled,
    PreconditionError,
)
from heapscope.core.types.config import (
    GCHandleExportOptions,
    HandleDisplayType,
    HeapDisplayType,
    HeapExportOptions,
    OutputType,
    parse_generation,
    parse_handle_display_type,
    parse_handle_kind,
    parse_heap_display_type,
    parse_output_type,
)
from heapscope.core.types.results import ExportOutcome, ExportResult


class TestOutputType:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Console", OutputType.CONSOLE),
            ("console", OutputType.CONSOLE),
            ("CSV", OutputType.CSV),
            ("CommaDelimited", OutputType.CSV),
            ("tab", OutputType.TAB),
            ("TabDelimited", OutputType.TAB),
            ("json", OutputType.JSON),
            ("Structured", OutputType.JSON),
        ],
    )
    def test_parse(self, name, expected):
        assert parse_output_type(name) is expected

    def test_unknown(self):
        with pytest.raises(ConfigurationError, match="Invalid output type 'xml' specified."):
            parse_output_type("xml")


class TestDisplayTypes:
    def test_heap_display_types(self):
        assert parse_heap_display_type("objectsummary") is HeapDisplayType.OBJECT_SUMMARY
        assert parse_heap_display_type("ThinLock") is HeapDisplayType.THIN_LOCK
        assert parse_heap_display_type("OBJECT_FRAGMENTATION_SUMMARY") is HeapDisplayType.OBJECT_FRAGMENTATION_SUMMARY
        assert len(HeapDisplayType) == 9

    def test_handle_display_types(self):
        assert parse_handle_display_type("handles") is HandleDisplayType.HANDLES
        assert parse_handle_display_type("Totals") is HandleDisplayType.TOTALS

    def test_unknown(self):
        with pytest.raises(ConfigurationError, match="display type"):
            parse_heap_display_type("Graph")
        with pytest.raises(ConfigurationError, match="display type"):
            parse_handle_display_type("Graph")

    def test_option_models_resolve(self):
        assert HeapExportOptions().resolved_display_type() is HeapDisplayType.OBJECT_SUMMARY
        assert HeapExportOptions().resolved_output_type() is OutputType.CONSOLE
        assert GCHandleExportOptions().resolved_display_type() is HandleDisplayType.STATISTICS


class TestFilterValueParsing:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("gen0", Generation.GEN0),
            ("GEN2", Generation.GEN2),
            ("loh", Generation.LARGE),
            ("large", Generation.LARGE),
            ("poh", Generation.PINNED),
            ("frozen", Generation.FROZEN),
        ],
    )
    def test_generation(self, name, expected):
        assert parse_generation(name) is expected

    def test_bad_generation(self):
        with pytest.raises(ConfigurationError, match="only gen0"):
            parse_generation("gen3")

    def test_handle_kind(self):
        assert parse_handle_kind("AsyncPinned") is HandleKind.ASYNC_PINNED
        with pytest.raises(ConfigurationError):
            parse_handle_kind("nope")


class TestExportResult:
    def test_completed(self):
        result = ExportResult(outcome=ExportOutcome.COMPLETED, items_scanned=5, rows_written=2)
        assert result.completed
        assert not result.cancelled

    def test_cancelled(self):
        result = ExportResult(outcome=ExportOutcome.CANCELLED)
        assert result.cancelled
        assert result.rows_written == 0


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(ConfigurationError, HeapscopeError)
        assert issubclass(ConfigurationError, ValueError)
        assert issubclass(PreconditionError, HeapscopeError)
        assert not issubclass(OperationCancelled, HeapscopeError)
