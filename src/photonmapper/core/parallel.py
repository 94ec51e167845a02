"""Index-parallel for-loop execution.

Both rendering phases (photon tracing and the camera pass) are expressed as
``loop(callback, start, end, stride)``: call ``callback(i)`` exactly once for
every ``i`` in ``[start, end)`` and return when all calls have finished.

Implementations:
    SingleThreadedParallelizer: a plain loop on the calling thread
    ThreadPoolParallelizer: persistent worker threads plus the caller

The pool works fork-join style. Each ``loop`` publishes one task whose
cursor starts at ``start - stride``. Every participant (the background
workers and the calling thread) repeatedly claims the next
``[next, next + stride)`` sub-range with an atomic fetch-and-add until the
cursor passes ``end``. Background workers then meet at a rendezvous: the
last one to finish clears the task and sets the event the caller waits on.
Closing the pool publishes a poison task that makes every worker exit.

Iterations are not ordered. A callback must tolerate running on any thread
and in any order relative to the other indices.

Example:
    >>> from src.photonmapper.core.parallel import create_parallelizer
    >>> results = [0] * 100
    >>> def work(i):
    ...     results[i] = i * i
    >>> with create_parallelizer(worker_count=4) as parallelizer:
    ...     parallelizer.loop(work, 0, 100, stride=8)
    >>> results[99]
    9801
"""

from __future__ import annotations

import logging
import math
import os
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable

logger = logging.getLogger(__name__)

LoopCallback = Callable[[int], None]


def processor_count() -> int:
    """Number of logical processors, at least 1."""
    return os.cpu_count() or 1


class AtomicCounter:
    """An integer counter whose updates are atomic across threads."""

    def __init__(self, value: int = 0) -> None:
        self._value = value
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        return self._value

    def store(self, value: int) -> None:
        with self._lock:
            self._value = value

    def fetch_add(self, delta: int = 1) -> int:
        """Add ``delta`` and return the previous value."""
        with self._lock:
            old = self._value
            self._value = old + delta
            return old

    def claim_below(self, limit: int) -> int | None:
        """Claim the next slot in ``[0, limit)``.

        Returns:
            The claimed slot, or None once ``limit`` slots have been claimed.
            The counter never exceeds ``limit``.
        """
        with self._lock:
            slot = self._value
            if slot >= limit:
                return None
            self._value = slot + 1
            return slot


def _check_loop_arguments(start: int, end: int, stride: int) -> None:
    if stride <= 0:
        raise ValueError(f"stride must be positive, got {stride}")
    if start < 0 or end < 0:
        raise ValueError(f"loop bounds must be non-negative, got [{start}, {end})")


# =============================================================================
# Parallelizer Interface
# =============================================================================


class Parallelizer(ABC):
    """Executes index-parallel loops.

    ``loop`` must only be called from one thread at a time. Instances hold
    OS resources; close them (or use them as context managers) when done.
    """

    @abstractmethod
    def loop(self, callback: LoopCallback, start: int, end: int, stride: int = 1) -> None:
        """Call ``callback(i)`` once for every i in ``[start, end)``.

        Blocks until every call has returned.

        Args:
            callback: Function invoked with each index.
            start: First index (inclusive).
            end: Last index (exclusive).
            stride: Number of consecutive indices a participant claims at
                once.

        Raises:
            ValueError: If stride is not positive or the bounds are negative.
            BaseException: The first exception raised by ``callback`` on any
                participant, re-raised on the calling thread after the loop
                has drained.
        """

    @property
    @abstractmethod
    def participant_count(self) -> int:
        """Number of threads taking part in a loop, the caller included."""

    @abstractmethod
    def iteration_counts(self) -> list[int]:
        """Indices processed so far by each participant."""

    def balance_factor(self) -> float:
        """Normalized load-balance metric over all loops run so far.

        Returns:
            The Shannon entropy of the per-participant iteration counts
            divided by its maximum, log(participants): 1.0 for perfectly even
            load, approaching 0 when one participant did everything. NaN if
            nothing has run yet.
        """
        counts = self.iteration_counts()
        total = sum(counts)
        if total == 0:
            return math.nan
        if len(counts) == 1:
            return 1.0
        entropy = 0.0
        for count in counts:
            if count > 0:
                p = count / total
                entropy -= p * math.log(p)
        return entropy / math.log(len(counts))

    def close(self) -> None:
        """Release any threads held by the parallelizer."""

    def __enter__(self) -> Parallelizer:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class SingleThreadedParallelizer(Parallelizer):
    """Runs every loop sequentially on the calling thread."""

    def __init__(self) -> None:
        self._iterations = 0

    def loop(self, callback: LoopCallback, start: int, end: int, stride: int = 1) -> None:
        _check_loop_arguments(start, end, stride)
        for i in range(start, end):
            callback(i)
            self._iterations += 1

    @property
    def participant_count(self) -> int:
        return 1

    def iteration_counts(self) -> list[int]:
        return [self._iterations]

    def __repr__(self) -> str:
        return "SingleThreadedParallelizer()"


# =============================================================================
# Thread Pool
# =============================================================================


class _WorkerTask:
    """Shared state of one ``loop`` call."""

    def __init__(self, callback: LoopCallback, start: int, end: int, stride: int) -> None:
        self.callback = callback
        self.end = end
        self.stride = stride
        self.cursor = AtomicCounter(start - stride)
        self.error: BaseException | None = None
        self._error_lock = threading.Lock()

    def run(self) -> int:
        """Claim and process sub-ranges until none are left.

        Returns:
            The number of indices this participant processed.
        """
        completed = 0
        stride = self.stride
        while self.error is None:
            first = self.cursor.fetch_add(stride) + stride
            if first >= self.end:
                break
            last = min(self.end, first + stride)
            try:
                for j in range(first, last):
                    self.callback(j)
                    completed += 1
            except BaseException as exc:
                # Recorded for the caller; a worker thread must always reach the rendezvous
                with self._error_lock:
                    if self.error is None:
                        self.error = exc
                break
        return completed


# Sentinel published by close(); workers exit instead of processing indices
_POISON = object()


class ThreadPoolParallelizer(Parallelizer):
    """Parallelizer backed by persistent worker threads.

    Spawns ``worker_count - 1`` background threads; the thread calling
    ``loop`` is the remaining participant.

    Args:
        worker_count: Total participants, caller included. Defaults to the
            number of logical processors.

    Raises:
        ValueError: If worker_count is smaller than 1.
        RuntimeError: If a worker thread cannot be started.
    """

    def __init__(self, worker_count: int | None = None) -> None:
        if worker_count is None:
            worker_count = processor_count()
        if worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {worker_count}")

        self._worker_count = worker_count
        self._condition = threading.Condition()
        self._generation = 0
        self._task: _WorkerTask | object | None = None
        self._active_workers = AtomicCounter(0)
        self._completed = threading.Event()
        self._loop_lock = threading.Lock()
        self._closed = False
        # Slot 0 belongs to the calling thread
        self._iteration_counts = [0] * worker_count
        self._threads: list[threading.Thread] = []

        try:
            for slot in range(1, worker_count):
                thread = threading.Thread(
                    target=self._worker_main,
                    args=(slot,),
                    name=f"photonmapper-worker-{slot}",
                    daemon=True,
                )
                thread.start()
                self._threads.append(thread)
        except RuntimeError:
            self.close()
            raise

        logger.debug("Started thread pool with %d participants", worker_count)

    @property
    def participant_count(self) -> int:
        return self._worker_count

    def iteration_counts(self) -> list[int]:
        return list(self._iteration_counts)

    def loop(self, callback: LoopCallback, start: int, end: int, stride: int = 1) -> None:
        _check_loop_arguments(start, end, stride)
        if end <= start:
            return

        with self._loop_lock:
            if self._closed:
                raise RuntimeError("Cannot run a loop on a closed parallelizer")

            task = _WorkerTask(callback, start, end, stride)
            if self._threads:
                self._completed.clear()
                self._active_workers.store(len(self._threads))
                self._publish(task)

            self._iteration_counts[0] += task.run()

            if self._threads:
                self._completed.wait()

        if task.error is not None:
            raise task.error

    def close(self) -> None:
        """Stop and join the worker threads. Safe to call more than once."""
        with self._loop_lock:
            if self._closed:
                return
            self._closed = True
            if self._threads:
                self._completed.clear()
                self._active_workers.store(len(self._threads))
                self._publish(_POISON)
                self._completed.wait()
                for thread in self._threads:
                    thread.join()

        logger.debug("Thread pool closed, balance factor %.3f", self.balance_factor())

    def _publish(self, task: _WorkerTask | object) -> None:
        with self._condition:
            self._task = task
            self._generation += 1
            self._condition.notify_all()

    def _worker_main(self, slot: int) -> None:
        seen_generation = 0
        while True:
            with self._condition:
                while self._generation == seen_generation:
                    self._condition.wait()
                seen_generation = self._generation
                task = self._task

            if task is _POISON:
                self._finish()
                return

            try:
                self._iteration_counts[slot] += task.run()
            finally:
                self._finish()

    def _finish(self) -> None:
        # The last background worker out clears the task and wakes the caller
        if self._active_workers.fetch_add(-1) == 1:
            with self._condition:
                self._task = None
            self._completed.set()

    def __repr__(self) -> str:
        return f"ThreadPoolParallelizer(worker_count={self._worker_count})"


def create_parallelizer(use_multithreading: bool = True, worker_count: int | None = None) -> Parallelizer:
    """Create the executor for the requested mode.

    Falls back to the single-threaded executor when worker threads cannot
    be started.

    Args:
        use_multithreading: Whether to use a thread pool at all.
        worker_count: Participants for the pool (defaults to the processor
            count).

    Returns:
        A ready-to-use parallelizer.
    """
    if not use_multithreading:
        return SingleThreadedParallelizer()
    try:
        return ThreadPoolParallelizer(worker_count)
    except RuntimeError as exc:
        logger.warning("Could not start worker threads (%s); using single-threaded execution", exc)
        return SingleThreadedParallelizer()
