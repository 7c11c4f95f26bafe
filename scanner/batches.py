"""Bounded-concurrency batch processing of per-file work."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def chunked(seq: Sequence[T], size: int) -> Iterable[List[T]]:
    for idx in range(0, len(seq), size):
        yield list(seq[idx : idx + size])


@dataclass
class BatchOutcome(Generic[T, R]):
    """Results of a batched run, in input order."""

    results: List[Tuple[T, R]] = field(default_factory=list)
    errors: List[Tuple[T, Exception]] = field(default_factory=list)
    batches: int = 0
    stopped: Optional[str] = None

    @property
    def processed(self) -> int:
        return len(self.results) + len(self.errors)


def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], R],
    concurrency: int,
    expected_errors: Tuple[Type[BaseException], ...] = (OSError,),
    should_stop: Optional[Callable[[], Optional[str]]] = None,
    on_item_done: Optional[Callable[[T, int], None]] = None,
) -> BatchOutcome[T, R]:
    """
    Run ``worker`` over items in fixed-size batches on a thread pool.

    Each batch of ``concurrency`` items is submitted and fully awaited
    before the next one starts. ``should_stop`` is consulted between
    batches only; a non-None return value stops scheduling and is recorded
    as ``outcome.stopped``.

    Args:
        items: Work items.
        worker: Function applied to each item.
        concurrency: Batch size and pool size.
        expected_errors: Exception types recorded per item instead of raised.
        should_stop: Optional stop check, returns a reason or None.
        on_item_done: Optional callback (item, processed_count).

    Returns:
        BatchOutcome with per-item results and errors in input order.
    """
    outcome: BatchOutcome[T, R] = BatchOutcome()
    if not items:
        return outcome

    with ThreadPoolExecutor(max_workers=max(1, concurrency)) as executor:
        for batch in chunked(items, max(1, concurrency)):
            if should_stop is not None:
                reason = should_stop()
                if reason:
                    logger.info("Stopping before batch %d: %s", outcome.batches + 1, reason)
                    outcome.stopped = reason
                    break

            futures = [(item, executor.submit(worker, item)) for item in batch]
            for item, future in futures:
                try:
                    outcome.results.append((item, future.result()))
                except expected_errors as e:
                    outcome.errors.append((item, e))
                if on_item_done is not None:
                    on_item_done(item, outcome.processed)
            outcome.batches += 1

    return outcome
