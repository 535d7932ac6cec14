"""Parallelization utilities for bedforge.

Example:
    >>> from bedforge.parallel import RecordExecutor
    >>> executor = RecordExecutor(n_workers=8)
    >>> results, stats = executor.map_records(process_record, records)
"""

from bedforge.parallel.executor import (
    ExecutionStats,
    ExecutorBackend,
    RecordExecutor,
    TaskResult,
    create_progress_bar,
    get_optimal_workers,
)

__all__ = [
    "ExecutionStats",
    "ExecutorBackend",
    "RecordExecutor",
    "TaskResult",
    "create_progress_bar",
    "get_optimal_workers",
]
