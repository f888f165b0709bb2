"""Tests for column formatting."""

from __future__ import annotations

import pytest

from heapscope.bridge.types import HandleKind
from heapscope.core.output.columns import TEXT_COLUMN, Column, ColumnKind, format_value


class TestFormatValue:
    @pytest.mark.parametrize(
        "kind",
        [ColumnKind.POINTER, ColumnKind.DUMP_OBJ, ColumnKind.DUMP_HEAP, ColumnKind.LIST_NEAR_OBJ],
    )
    def test_pointer_kinds_are_zero_padded_hex(self, kind):
        assert format_value(kind, 0x7FF8A1B2) == "000000007ff8a1b2"

    def test_hex_value(self):
        assert format_value(ColumnKind.HEX_VALUE, 0x1A2B) == "0x1a2b"

    def test_integer_uses_group_separators(self):
        assert format_value(ColumnKind.INTEGER, 1234567) == "1,234,567"

    def test_integer_without_commas(self):
        assert format_value(ColumnKind.INTEGER_WITHOUT_COMMAS, 1234567) == "1234567"

    def test_none_renders_empty(self):
        for kind in ColumnKind:
            assert format_value(kind, None) == ""

    def test_enum_uses_display_name(self):
        assert format_value(ColumnKind.TEXT, HandleKind.WEAK_LONG) == "WeakLong"

    def test_console_padding(self):
        assert format_value(ColumnKind.INTEGER_WITHOUT_COMMAS, 42, width=6) == "    42"
        assert format_value(ColumnKind.TEXT, "ab", width=6) == "ab    "

    def test_export_is_never_padded(self):
        assert format_value(ColumnKind.INTEGER_WITHOUT_COMMAS, 42, width=6, export=True) == "42"
        assert format_value(ColumnKind.TEXT, "ab", width=6, export=True) == "ab"

    def test_text_passes_through(self):
        assert format_value(ColumnKind.TYPE_NAME, "System.String") == "System.String"


class TestColumn:
    def test_default_widths(self):
        assert Column(ColumnKind.DUMP_OBJ).display_width == 16
        assert Column(ColumnKind.TYPE_NAME).display_width == 0

    def test_explicit_width(self):
        column = Column(ColumnKind.TEXT, width=20)
        assert column.display_width == 20
        assert column.format("x") == "x".ljust(20)

    def test_alignment(self):
        assert Column(ColumnKind.INTEGER).right_aligned
        assert not Column(ColumnKind.TEXT).right_aligned

    def test_only_plain_integers_are_numeric(self):
        assert Column(ColumnKind.INTEGER_WITHOUT_COMMAS).is_numeric
        assert not Column(ColumnKind.INTEGER).is_numeric
        assert not Column(ColumnKind.POINTER).is_numeric
        assert not TEXT_COLUMN.is_numeric

    def test_format_export(self):
        assert Column(ColumnKind.DUMP_OBJ).format(0x10, export=True) == "0000000000000010"
