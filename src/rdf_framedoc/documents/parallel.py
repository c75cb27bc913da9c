"""
Ordered parallel materialization.

Work items are materialized on a thread pool. Workers report
``(index, outcome)`` pairs on a queue as they finish; the collector buffers
out-of-order results in a min-heap keyed by index and releases them as soon
as they are contiguous with the next expected index. Output order is
therefore identical to input order.

Skip/count bounds are applied to the work list before dispatch. Once
started, all dispatched work runs to completion.
"""

from __future__ import annotations

import heapq
import logging
import queue
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar

from rdf_framedoc.exceptions import InternalConsistencyError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class _Failure:
    """Carries a worker exception to the collector."""
    __slots__ = ("error",)

    def __init__(self, error: BaseException):
        self.error = error


def ordered_parallel_map(
    func: Callable[[T], R],
    items: Sequence[T],
    workers: Optional[int] = None,
) -> Iterator[R]:
    """
    Apply ``func`` to every item on a thread pool, yielding results in input order.

    An exception raised by ``func`` is re-raised in the consuming thread
    when its position in the output is reached.
    """
    items = list(items)
    if not items:
        return

    results: "queue.Queue[Tuple[int, Any]]" = queue.Queue()

    def work(index: int, item: T) -> None:
        try:
            outcome: Any = func(item)
        except BaseException as e:
            # every item puts exactly one outcome on the queue
            outcome = _Failure(e)
        results.put((index, outcome))

    heap: List[Tuple[int, Any]] = []
    cur = 0
    with ThreadPoolExecutor(max_workers=workers) as executor:
        for index, item in enumerate(items):
            executor.submit(work, index, item)

        for _ in range(len(items)):
            heapq.heappush(heap, results.get())
            while heap and heap[0][0] == cur:
                _, outcome = heapq.heappop(heap)
                cur += 1
                if isinstance(outcome, _Failure):
                    raise outcome.error
                yield outcome

    if heap:
        raise InternalConsistencyError(
            f"reorder heap not empty after all results arrived ({len(heap)} left, next index {cur})"
        )


def materialize_all_parallel(
    materializer,
    type_filter: Optional[Iterable[str]] = None,
    skip: int = 0,
    count: Optional[int] = None,
    workers: Optional[int] = None,
) -> Iterator[dict]:
    """
    Same sequence as ``materializer.materialize_all``, built on a worker pool.
    """
    if workers is None:
        workers = materializer.config.workers
    ids = list(materializer.document_ids(type_filter, skip, count))
    logger.info(f"Materializing {len(ids)} documents with {workers or 'default'} workers")
    return ordered_parallel_map(materializer.get_id_document, ids, workers)
