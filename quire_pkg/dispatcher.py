"""
Worker pool and pull-based task dispatch.

Tasks are not partitioned up front. A shared counter hands out the next
unclaimed task index, and the dispatcher claims a new one every time a
worker finishes, keeping a small number of tasks queued per worker.
"""

import os
import logging
import threading
from collections import Counter
from concurrent.futures import (
    FIRST_COMPLETED,
    BrokenExecutor,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from typing import List, Optional, Sequence

from .errors import WorkerPoolError
from .models import Task, TaskResult
from .pipeline import PipelineConfig
from .worker import FileProcessor, initializer, process_file

EXECUTORS = ('process', 'thread')
DEFAULT_PREFETCH = 4
# Below this many files the pool start-up costs more than it saves
DEFAULT_PARALLEL_THRESHOLD = 12
DEFAULT_STALL_WARNING = 30.0


class TaskCounter:
    """Claims task indices exactly once each, from any thread."""

    def __init__(self, total: int):
        self.total = total
        self._next = 0
        self._lock = threading.Lock()

    def claim(self) -> Optional[int]:
        with self._lock:
            if self._next >= self.total:
                return None
            index = self._next
            self._next += 1
            return index

    @property
    def claimed(self) -> int:
        with self._lock:
            return self._next


def default_worker_count() -> int:
    return max(1, os.cpu_count() or 1)


class Dispatcher:
    """Runs FileProcessor tasks on a pool of workers and collects every result."""

    def __init__(self, config: Optional[PipelineConfig] = None, workers: Optional[int] = None,
                 prefetch: int = DEFAULT_PREFETCH, executor: str = 'process',
                 parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD,
                 stall_warning: Optional[float] = DEFAULT_STALL_WARNING):
        if executor not in EXECUTORS:
            raise ValueError(f"Unknown executor '{executor}', expected one of: {', '.join(EXECUTORS)}")
        self.config = config or PipelineConfig()
        self.workers = max(1, workers) if workers else default_worker_count()
        self.prefetch = max(1, prefetch)
        self.executor = executor
        self.parallel_threshold = parallel_threshold
        self.stall_warning = stall_warning
        self.logger = logging.getLogger('Quire')

    def run(self, tasks: Sequence[Task]) -> List[TaskResult]:
        """
        Process every task and return one result per task, in task order.

        Per-document failures are logged and returned as error results.

        Raises:
            WorkerPoolError: if a worker crashes or cannot start.
        """
        tasks = list(tasks)
        if not tasks:
            self.logger.warning("No markdown files found to process.")
            return []

        if len(tasks) < self.parallel_threshold:
            self.logger.info(f"Using single-threaded processing for {len(tasks)} files")
            results = self._run_inline(tasks)
        else:
            self.logger.info(
                f"Using {self.executor} pool for {len(tasks)} files with {self.workers} workers"
            )
            results = self._run_pool(tasks)

        for result in results:
            if not result.ok:
                self.logger.error(f"Failed to process {result.identifier}: {result.error}")

        per_worker = Counter(result.worker for result in results)
        for worker, count in sorted(per_worker.items(), key=lambda item: str(item[0])):
            self.logger.debug(f"Worker {worker} processed {count} tasks")

        return sorted(results, key=lambda result: result.index)

    def _run_inline(self, tasks):
        processor = FileProcessor(self.config)
        counter = TaskCounter(len(tasks))
        results = []
        index = counter.claim()
        while index is not None:
            results.append(processor.process(tasks[index]))
            index = counter.claim()
        return results

    def _create_executor(self):
        if self.executor == 'thread':
            return ThreadPoolExecutor(
                max_workers=self.workers,
                thread_name_prefix='quire-worker',
                initializer=initializer,
                initargs=(self.config,),
            )
        return ProcessPoolExecutor(
            max_workers=self.workers,
            initializer=initializer,
            initargs=(self.config,),
        )

    def _run_pool(self, tasks):
        counter = TaskCounter(len(tasks))
        window = self.workers * self.prefetch
        in_flight = {}
        results = []

        try:
            with self._create_executor() as executor:

                def submit_next():
                    index = counter.claim()
                    if index is None:
                        return False
                    task = tasks[index]
                    in_flight[executor.submit(process_file, task)] = task
                    return True

                while len(in_flight) < window and submit_next():
                    pass

                while in_flight:
                    done, _ = wait(in_flight, timeout=self.stall_warning, return_when=FIRST_COMPLETED)
                    if not done:
                        waiting = ', '.join(sorted(task.identifier for task in in_flight.values()))
                        self.logger.warning(
                            f"No document finished in {self.stall_warning} seconds, still processing: {waiting}"
                        )
                        continue
                    for future in done:
                        task = in_flight.pop(future)
                        results.append(self._collect(future, task))
                        submit_next()
        except BrokenExecutor as e:
            raise WorkerPoolError(f"Worker pool failed after {len(results)} of {len(tasks)} tasks: {e}") from e

        return results

    def _collect(self, future, task):
        try:
            return future.result()
        except BrokenExecutor:
            raise
        except Exception as e:
            # The task never reached FileProcessor.process, e.g. it could not be pickled
            return TaskResult(
                status=TaskResult.ERROR,
                index=task.index,
                identifier=task.identifier,
                error=f"{type(e).__name__}: {e}",
            )
