"""Unit tests for OperationErrorLog."""

import pytest

from infrastructure.operations.error_log import OperationErrorLog
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus


@pytest.mark.unit
class TestOperationErrorLog:
    """Tests for OperationErrorLog."""

    def test_last_is_none_when_empty(self):
        log = OperationErrorLog()

        assert log.last is None
        assert len(log) == 0

    def test_record_keeps_context(self):
        log = OperationErrorLog()

        entry = log.record(
            OperationResult.validation_error("bad"), mutation_id="m-1", label="split"
        )

        assert log.last is entry
        assert entry.context == {"mutation_id": "m-1", "label": "split"}
        assert entry.status == OperationStatus.VALIDATION_ERROR
        assert entry.message == "bad"

    def test_keeps_most_recent_entries(self):
        """Test the log is bounded and drops the oldest entries."""
        log = OperationErrorLog(max_entries=3)

        for i in range(5):
            log.record(OperationResult.unknown_error(f"error {i}"))

        assert len(log) == 3
        assert [e.message for e in log.entries()] == ["error 2", "error 3", "error 4"]

    def test_entries_filter_by_status(self):
        log = OperationErrorLog()
        log.record(OperationResult.validation_error("v"))
        log.record(OperationResult.offline())
        log.record(OperationResult.validation_error("w"))

        validation = log.entries(OperationStatus.VALIDATION_ERROR)

        assert [e.message for e in validation] == ["v", "w"]

    def test_clear_by_status(self):
        log = OperationErrorLog()
        log.record(OperationResult.validation_error("v"))
        log.record(OperationResult.offline())

        log.clear(OperationStatus.OFFLINE)

        assert [e.status for e in log.entries()] == [OperationStatus.VALIDATION_ERROR]

    def test_clear_all(self):
        log = OperationErrorLog()
        log.record(OperationResult.validation_error("v"))

        log.clear()

        assert log.last is None

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            OperationErrorLog(max_entries=0)
