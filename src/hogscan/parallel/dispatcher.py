"""
Fixed-size worker pool fan-out over an index range.
Each work index writes exactly one output slot, so workers never share a write.
"""
import os
import queue
import threading
from typing import Any, Callable, List, MutableSequence, Optional, Tuple


def default_worker_count() -> int:
    """Number of hardware threads, never less than one."""
    return max(1, os.cpu_count() or 1)


def plan_workers(budget: Optional[int], parallel: bool,
                 parallel_children: bool) -> Tuple[int, int]:
    """
    Split a worker budget between the outer (per-window) and inner
    (per-cell/per-block) pools.

    Args:
        budget: Total number of threads allowed at once (None = hardware count)
        parallel: Whether whole windows are fanned out
        parallel_children: Whether cell/block stages are fanned out

    Returns:
        Tuple of (outer_workers, inner_workers) with outer * inner <= budget
    """
    if budget is None:
        budget = default_worker_count()
    budget = max(1, int(budget))

    if parallel and parallel_children:
        outer = max(1, budget // 2)
        inner = max(1, budget // outer)
        return outer, inner
    if parallel:
        return budget, 1
    if parallel_children:
        return 1, budget
    return 1, 1


class WorkDispatcher:
    """
    Thread pool created per call.

    Work indices are queued before any worker starts; a worker exits once the
    queue is drained. The queue capacity is exactly the number of items.
    """

    def __init__(self, workers: Optional[int] = None):
        """
        Initialize dispatcher.

        Args:
            workers: Number of worker threads per call (None = hardware count)
        """
        self.workers = default_worker_count() if workers is None else max(1, int(workers))

    def run_parallel(self, item_count: int, worker_count: int,
                     work_fn: Callable[[int], Any],
                     output: MutableSequence) -> None:
        """
        Compute ``output[i] = work_fn(i)`` for every i in [0, item_count).

        Blocks until all workers have exited. If any call to ``work_fn``
        raised, the remaining items are still processed and the first
        exception is re-raised here.

        Args:
            item_count: Number of work indices
            worker_count: Number of threads to spawn
            work_fn: Pure function of the index
            output: Preallocated sequence with at least item_count slots
        """
        if item_count <= 0:
            return
        if len(output) < item_count:
            raise ValueError(
                f"Output has {len(output)} slots, expected at least {item_count}"
            )

        worker_count = max(1, min(int(worker_count), item_count))

        work_queue: "queue.Queue[int]" = queue.Queue(maxsize=item_count)
        for index in range(item_count):
            work_queue.put_nowait(index)

        errors: List[BaseException] = []
        errors_lock = threading.Lock()

        def worker() -> None:
            while True:
                try:
                    index = work_queue.get_nowait()
                except queue.Empty:
                    return
                try:
                    output[index] = work_fn(index)
                except Exception as e:
                    with errors_lock:
                        errors.append(e)

        threads = [threading.Thread(target=worker, daemon=True)
                   for _ in range(worker_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        if errors:
            raise errors[0]

    def map_indices(self, item_count: int,
                    work_fn: Callable[[int], Any],
                    workers: Optional[int] = None) -> List[Any]:
        """
        Evaluate work_fn over range(item_count) into a new list.

        Runs inline when the worker count is one.
        """
        workers = self.workers if workers is None else max(1, int(workers))
        output: List[Any] = [None] * item_count
        if workers <= 1:
            for index in range(item_count):
                output[index] = work_fn(index)
        else:
            self.run_parallel(item_count, workers, work_fn, output)
        return output
