"""
Bounded fan-out for multi-user maintenance jobs.

Items are processed in consecutive batches; at most `batch_size` operations
run at once and each batch finishes before the next starts.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 10


@dataclass
class BatchOutcome(Generic[T]):
    """Result of one operation; `error` is set when it raised."""

    item: T
    result: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_in_batches(
    items: Sequence[T],
    operation: Callable[[T], Any],
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> List[BatchOutcome[T]]:
    """
    Apply `operation` to every item with bounded concurrency.

    A failing item is recorded in its outcome and does not stop the others.
    Outcomes are returned in input order.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    outcomes: List[BatchOutcome[T]] = []
    if not items:
        return outcomes

    with ThreadPoolExecutor(max_workers=batch_size, thread_name_prefix="batch_") as executor:
        for start in range(0, len(items), batch_size):
            batch = items[start:start + batch_size]
            futures = [executor.submit(operation, item) for item in batch]
            for item, future in zip(batch, futures):
                try:
                    outcomes.append(BatchOutcome(item=item, result=future.result()))
                except Exception as e:
                    logger.exception("Batch operation failed for %r", item)
                    outcomes.append(BatchOutcome(item=item, error=e))

    return outcomes
