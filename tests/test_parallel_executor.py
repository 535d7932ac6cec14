"""Tests for bedforge.parallel.executor module.

Tests cover:
- TaskResult data structure
- ExecutionStats data structure
- RecordExecutor with different backends
- Utility functions
"""

import functools
from unittest.mock import MagicMock

import pytest

from bedforge.core.fraction import FractionMode, extract_fraction
from bedforge.parallel.executor import (
    ExecutionStats,
    ExecutorBackend,
    RecordExecutor,
    TaskResult,
    get_optimal_workers,
)


def fail_on_odd(value: int) -> int:
    if value % 2:
        raise ValueError(f"odd value {value}")
    return value


# =============================================================================
# Data Structure Tests
# =============================================================================


class TestTaskResult:
    """Tests for TaskResult data structure."""

    def test_to_dict(self):
        """Test serialization to dict."""
        result = TaskResult(task_id="3", success=True, result=42, duration_seconds=1.23456)
        assert result.to_dict() == {
            "task_id": "3",
            "success": True,
            "error": None,
            "duration_seconds": 1.235,
        }


class TestExecutionStats:
    """Tests for ExecutionStats data structure."""

    def test_to_dict(self):
        """Test serialization to dict."""
        stats = ExecutionStats(
            total_tasks=10,
            successful=9,
            failed=1,
            total_duration=12.3456,
            mean_task_duration=1.23456,
            max_task_duration=2.0,
        )
        data = stats.to_dict()
        assert data["successful"] == 9
        assert data["total_duration"] == 12.346


# =============================================================================
# Executor Tests
# =============================================================================


class TestRecordExecutor:
    """Tests for RecordExecutor."""

    def test_single_worker_is_serial(self):
        """One worker always runs serially."""
        executor = RecordExecutor(n_workers=1, backend="threads")
        assert executor.backend == ExecutorBackend.SERIAL

    def test_backend_from_string(self):
        """Backends can be given by name."""
        executor = RecordExecutor(n_workers=2, backend="threads")
        assert executor.backend == ExecutorBackend.THREADS

    def test_empty(self):
        """No records, no results."""
        results, stats = RecordExecutor().map_records(abs, [])
        assert results == []
        assert stats.total_tasks == 0

    def test_serial(self):
        """Serial execution keeps input order."""
        results, stats = RecordExecutor().map_records(abs, [-3, 1, -2])
        assert [r.result for r in results] == [3, 1, 2]
        assert [r.task_id for r in results] == ["0", "1", "2"]
        assert stats.successful == 3
        assert stats.failed == 0

    @pytest.mark.parametrize("backend", ["threads", "processes"])
    def test_pool_keeps_order(self, backend):
        """Pooled execution returns results in input order."""
        values = list(range(-20, 0))
        results, stats = RecordExecutor(n_workers=4, backend=backend).map_records(abs, values)
        assert [r.result for r in results] == [abs(v) for v in values]
        assert stats.total_tasks == 20

    def test_errors_captured(self):
        """Failures are recorded and processing continues."""
        results, stats = RecordExecutor(n_workers=2, backend="threads").map_records(
            fail_on_odd, [2, 3, 4]
        )
        assert [r.success for r in results] == [True, False, True]
        assert "odd value 3" in results[1].error
        assert stats.failed == 1

    def test_stop_on_error(self):
        """continue_on_error=False raises on the first failure."""
        with pytest.raises(RuntimeError, match="odd value"):
            RecordExecutor().map_records(fail_on_odd, [2, 3, 4], continue_on_error=False)

    def test_progress_callback(self):
        """The callback is called once per record."""
        callback = MagicMock()
        RecordExecutor(n_workers=2, backend="threads", progress_callback=callback).map_records(
            abs, [1, 2, 3]
        )
        assert callback.call_count == 3
        assert callback.call_args_list[-1].args[:2] == (3, 3)

    def test_fraction_records(self, baat, simple_record):
        """Fraction extraction over records in worker threads."""
        func = functools.partial(extract_fraction, mode=FractionMode.CDS)
        results, _ = RecordExecutor(n_workers=2, backend="threads").map_records(
            func, [baat, simple_record]
        )
        assert results[0].result.thin_start == 101362427
        assert results[1].result.block_spans() == [(1200, 1300), (1500, 1800)]


class TestUtilities:
    """Tests for utility functions."""

    def test_optimal_workers_bounded_by_tasks(self):
        """Never more workers than tasks."""
        assert get_optimal_workers(2, max_workers=8) == 2

    def test_optimal_workers_at_least_one(self):
        """At least one worker, even without tasks."""
        assert get_optimal_workers(0) == 1
