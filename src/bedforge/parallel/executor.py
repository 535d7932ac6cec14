"""Local parallel execution over BED records.

Records are independent of each other, so batch operations (fraction
extraction, block decomposition) can be fanned out over a pool of workers.

Features:
    - Multiple execution backends (serial, threads, processes)
    - Progress reporting through a callback
    - Per-record error capture (continue on failure)
    - Results returned in input order

Example:
    >>> from bedforge.parallel.executor import RecordExecutor
    >>> executor = RecordExecutor(n_workers=4, backend="processes")
    >>> results, stats = executor.map_records(process_record, records)
    >>> print(f"Processed {stats.successful}/{stats.total_tasks} records")
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import (
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)
from enum import Enum
from typing import Any, Callable, Sequence, TypeVar

import attrs
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


# =============================================================================
# Enums
# =============================================================================


class ExecutorBackend(Enum):
    """Available execution backends."""

    SERIAL = "serial"
    THREADS = "threads"
    PROCESSES = "processes"


# =============================================================================
# Data Structures
# =============================================================================


@attrs.define(slots=True)
class TaskResult:
    """Result from processing a single record."""

    task_id: str
    success: bool
    result: Any | None = None
    error: str | None = None
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "task_id": self.task_id,
            "success": self.success,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@attrs.define(slots=True)
class ExecutionStats:
    """Statistics from parallel execution."""

    total_tasks: int
    successful: int
    failed: int
    total_duration: float
    mean_task_duration: float
    max_task_duration: float

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "total_tasks": self.total_tasks,
            "successful": self.successful,
            "failed": self.failed,
            "total_duration": round(self.total_duration, 3),
            "mean_task_duration": round(self.mean_task_duration, 3),
            "max_task_duration": round(self.max_task_duration, 3),
        }


def _run_task(func: Callable[[T], R], task_id: str, item: T) -> TaskResult:
    """Apply func to one item, capturing its result or error.

    Module-level so that it can be sent to worker processes.
    """
    start_time = time.time()
    try:
        result = func(item)
    except Exception as e:
        return TaskResult(
            task_id=task_id,
            success=False,
            error=f"{type(e).__name__}: {e}",
            duration_seconds=time.time() - start_time,
        )
    return TaskResult(
        task_id=task_id,
        success=True,
        result=result,
        duration_seconds=time.time() - start_time,
    )


# =============================================================================
# Executor
# =============================================================================


class RecordExecutor:
    """Apply a function to many records in parallel.

    For the process backend, ``func`` and the records must be picklable
    (module-level functions or ``functools.partial`` objects of them).

    Example:
        >>> executor = RecordExecutor(n_workers=4, backend="threads")
        >>> results, stats = executor.map_records(extract, records)
        >>> outputs = [r.result for r in results if r.success]
    """

    def __init__(
        self,
        n_workers: int = 1,
        backend: ExecutorBackend | str = ExecutorBackend.PROCESSES,
        progress_callback: Callable[[int, int, str], None] | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            n_workers: Number of parallel workers (1 = serial).
            backend: Execution backend.
            progress_callback: Called with (completed, total, task_id).
        """
        self.n_workers = max(1, n_workers)
        self.backend = (
            ExecutorBackend(backend) if isinstance(backend, str) else backend
        )
        self.progress_callback = progress_callback

        # Auto-select serial if n_workers=1
        if self.n_workers == 1:
            self.backend = ExecutorBackend.SERIAL

    def map_records(
        self,
        func: Callable[[T], R],
        records: Sequence[T],
        continue_on_error: bool = True,
    ) -> tuple[list[TaskResult], ExecutionStats]:
        """Apply function to each record.

        Args:
            func: Function taking a record, returning a result.
            records: Records to process.
            continue_on_error: If True, continue processing after failures.

        Returns:
            Tuple of (results in input order, execution_stats).

        Raises:
            RuntimeError: If a task fails and ``continue_on_error`` is False.
        """
        if not records:
            return [], ExecutionStats(
                total_tasks=0,
                successful=0,
                failed=0,
                total_duration=0.0,
                mean_task_duration=0.0,
                max_task_duration=0.0,
            )

        logger.info(
            f"Processing {len(records)} records with {self.n_workers} workers "
            f"(backend={self.backend.value})"
        )
        start_time = time.time()

        if self.backend == ExecutorBackend.SERIAL:
            results = self._execute_serial(func, records, continue_on_error)
        elif self.backend == ExecutorBackend.THREADS:
            with ThreadPoolExecutor(max_workers=self.n_workers) as pool:
                results = self._execute_pool(pool, func, records, continue_on_error)
        else:
            with ProcessPoolExecutor(max_workers=self.n_workers) as pool:
                results = self._execute_pool(pool, func, records, continue_on_error)

        total_duration = time.time() - start_time
        successful = sum(1 for r in results if r.success)
        failed = len(results) - successful
        durations = [r.duration_seconds for r in results]

        stats = ExecutionStats(
            total_tasks=len(results),
            successful=successful,
            failed=failed,
            total_duration=total_duration,
            mean_task_duration=sum(durations) / len(durations) if durations else 0,
            max_task_duration=max(durations) if durations else 0,
        )

        logger.info(
            f"Completed: {successful}/{len(records)} records, "
            f"duration={total_duration:.1f}s"
        )
        return results, stats

    def _execute_serial(
        self,
        func: Callable,
        records: Sequence,
        continue_on_error: bool,
    ) -> list[TaskResult]:
        """Serial execution with progress tracking."""
        results = []
        total = len(records)

        for i, record in enumerate(records):
            task_result = _run_task(func, str(i), record)
            results.append(task_result)

            if self.progress_callback:
                self.progress_callback(i + 1, total, task_result.task_id)

            if not task_result.success and not continue_on_error:
                logger.error(f"Task {task_result.task_id} failed: {task_result.error}")
                raise RuntimeError(task_result.error)

        return results

    def _execute_pool(
        self,
        pool: ThreadPoolExecutor | ProcessPoolExecutor,
        func: Callable,
        records: Sequence,
        continue_on_error: bool,
    ) -> list[TaskResult]:
        """Pooled execution; results are re-ordered to match the input."""
        total = len(records)
        futures: dict[Future, int] = {
            pool.submit(_run_task, func, str(i), record): i
            for i, record in enumerate(records)
        }
        results: list[TaskResult | None] = [None] * total

        for completed, future in enumerate(as_completed(futures), start=1):
            task_result = future.result()
            results[futures[future]] = task_result

            if self.progress_callback:
                self.progress_callback(completed, total, task_result.task_id)

            if not task_result.success and not continue_on_error:
                logger.error(f"Task {task_result.task_id} failed: {task_result.error}")
                pool.shutdown(wait=False, cancel_futures=True)
                raise RuntimeError(task_result.error)

        return results


def get_optimal_workers(n_tasks: int, max_workers: int | None = None) -> int:
    """Choose a worker count for a number of tasks.

    Args:
        n_tasks: Number of tasks to run.
        max_workers: Upper bound (CPU count if None).

    Returns:
        Worker count between 1 and min(n_tasks, max_workers).
    """
    limit = max_workers if max_workers is not None else (os.cpu_count() or 1)
    return max(1, min(n_tasks, limit))


def create_progress_bar(console: Console | None = None) -> Progress:
    """Create a rich progress bar for record processing.

    Args:
        console: Console to render on (stderr if None).

    Returns:
        Rich Progress object; add a task and pass its ``update`` through a
        progress callback.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console or Console(stderr=True),
        transient=True,
    )
