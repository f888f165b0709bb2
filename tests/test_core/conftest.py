"""Core test fixtures."""

from __future__ import annotations

import pytest


@pytest.fixture()
def tmp_report_dir(tmp_path):
    """Provide a temporary directory for report files."""
    report_dir = tmp_path / "reports"
    report_dir.mkdir()
    return report_dir


@pytest.fixture()
def collect_rows():
    """Feed items to an accumulating strategy and return its rows."""

    def collect(strategy, items):
        for item in items:
            strategy.accept(item, None)
        return list(strategy.rows())

    return collect
