"""Bounded worker pool with submission-ordered result handles.

Tasks run on a fixed set of threads in any order, but their handles are
kept in a FIFO so results are always drained in the order the tasks were
submitted. This makes the aggregate independent of thread scheduling.
"""

import logging
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Iterator, Optional

__all__ = ['WorkerPool', 'TaskHandle']

logger = logging.getLogger(__name__)


class TaskHandle:
    """Eventual result of one submitted task.

    Parameters
    ----------
    future : Future
        Future returned by the executor.
    index : int
        0-based submission index.
    label : str, optional
        Short description for log and error messages.
    """

    def __init__(self, future: Future, index: int, label: str = ""):
        self._future = future
        self.index = index
        self.label = label

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> Any:
        """Wait for the task and return its result.

        Raises whatever the task raised.
        """
        return self._future.result(timeout=timeout)

    def cancel(self) -> bool:
        return self._future.cancel()

    def __repr__(self):
        state = "done" if self.done() else "pending"
        return f"TaskHandle(index={self.index}, label={self.label!r}, {state})"


class WorkerPool:
    """Fixed-size thread pool that drains results in submission order.

    Parameters
    ----------
    concurrency : int
        Number of worker threads. At most this many tasks run at once.
    max_in_flight : int, optional
        When set, ``drain_overflow()`` yields handles until no more than
        this many are pending. None means unbounded (drain at the end).
    name : str, optional
        Thread name prefix (default: "stem-worker").

    Examples
    --------
    >>> with WorkerPool(concurrency=4) as pool:
    ...     for block in reader:
    ...         pool.submit(calculate_stem_values, block, masks)
    ...     for handle in pool.drain():
    ...         aggregator.add(handle.result())
    """

    def __init__(self, concurrency: int, max_in_flight: Optional[int] = None,
                 name: str = "stem-worker"):
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        if max_in_flight is not None and max_in_flight < 1:
            raise ValueError(f"max_in_flight must be >= 1, got {max_in_flight}")

        self.concurrency = concurrency
        self.max_in_flight = max_in_flight
        self._executor = ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix=name)
        self._pending: deque[TaskHandle] = deque()
        self._submitted = 0
        self._closed = False

        logger.info("WorkerPool initialized: concurrency=%d, max_in_flight=%s",
                    concurrency, max_in_flight if max_in_flight else "unbounded")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        # Queued tasks are dropped on error
        self.shutdown(cancel_pending=exc_type is not None)
        return False

    @property
    def pending(self) -> int:
        """Number of submitted handles not yet drained."""
        return len(self._pending)

    @property
    def submitted(self) -> int:
        return self._submitted

    def submit(self, fn: Callable, *args, label: str = "") -> TaskHandle:
        """Schedule ``fn(*args)`` and return its handle."""
        if self._closed:
            raise RuntimeError("WorkerPool is shut down")

        handle = TaskHandle(self._executor.submit(fn, *args), self._submitted, label)
        self._pending.append(handle)
        self._submitted += 1
        return handle

    def drain(self) -> Iterator[TaskHandle]:
        """Yield every pending handle, oldest first.

        Each handle is removed from the pool as it is yielded; the caller
        waits on it with ``handle.result()``. A slow early task holds back
        later results but not their computation.
        """
        while self._pending:
            yield self._pending.popleft()

    def drain_overflow(self) -> Iterator[TaskHandle]:
        """Yield the oldest handles while more than ``max_in_flight`` are pending."""
        if self.max_in_flight is None:
            return
        while len(self._pending) > self.max_in_flight:
            yield self._pending.popleft()

    def shutdown(self, cancel_pending: bool = False) -> None:
        """Stop accepting tasks and release the worker threads.

        Parameters
        ----------
        cancel_pending : bool, optional
            If True, tasks that have not started are cancelled and all
            undrained handles are discarded.
        """
        if self._closed:
            return
        self._closed = True

        if cancel_pending:
            cancelled = sum(1 for h in self._pending if h.cancel())
            if cancelled:
                logger.info("Cancelled %d queued tasks", cancelled)
            self._pending.clear()

        self._executor.shutdown(wait=True, cancel_futures=cancel_pending)
