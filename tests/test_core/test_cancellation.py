"""Tests for CancellationToken."""

from __future__ import annotations

import threading

import pytest

from heapscope.core.cancellation import CancellationToken
from heapscope.core.errors import OperationCancelled


class TestCancellationToken:
    def test_initially_not_cancelled(self):
        token = CancellationToken()
        assert not token.is_cancelled
        token.throw_if_cancelled()

    def test_cancel(self):
        token = CancellationToken()
        token.cancel()
        assert token.is_cancelled
        with pytest.raises(OperationCancelled):
            token.throw_if_cancelled()

    def test_cancel_is_idempotent(self):
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.is_cancelled

    def test_cancel_from_another_thread(self):
        token = CancellationToken()
        thread = threading.Thread(target=token.cancel)
        thread.start()
        thread.join()
        assert token.is_cancelled
