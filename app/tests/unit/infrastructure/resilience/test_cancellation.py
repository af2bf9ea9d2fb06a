"""Unit tests for cooperative cancellation."""

import pytest

from infrastructure.operations.exceptions import OperationCancelledError
from infrastructure.resilience.cancellation import (
    CancellationScope,
    CancellationToken,
)


@pytest.mark.unit
class TestCancellationToken:
    """Test suite for CancellationToken."""

    def test_new_token_is_not_cancelled(self):
        token = CancellationToken("search")

        assert token.cancelled is False
        token.raise_if_cancelled()

    def test_raise_if_cancelled(self):
        token = CancellationToken("search")
        token.cancel()

        with pytest.raises(OperationCancelledError, match="search"):
            token.raise_if_cancelled()


@pytest.mark.unit
class TestCancellationScope:
    """Test suite for CancellationScope."""

    def test_issue_cancels_previous_token(self):
        scope = CancellationScope()

        first = scope.issue("search")
        second = scope.issue("search")

        assert first.cancelled is True
        assert second.cancelled is False
        assert scope.is_current(second) is True
        assert scope.is_current(first) is False

    def test_keys_do_not_interfere(self):
        scope = CancellationScope()

        search = scope.issue("search")
        scope.issue("autosave")

        assert search.cancelled is False

    def test_cancel_key(self):
        scope = CancellationScope()
        token = scope.issue("search")

        scope.cancel("search")

        assert token.cancelled is True
        assert scope.is_current(token) is False

    def test_cancel_unknown_key_is_noop(self):
        CancellationScope().cancel("missing")

    def test_cancel_all(self):
        scope = CancellationScope()
        tokens = [scope.issue(key) for key in ("a", "b")]

        scope.cancel_all()

        assert all(token.cancelled for token in tokens)

    def test_token_without_key_is_never_current(self):
        assert CancellationScope().is_current(CancellationToken()) is False
