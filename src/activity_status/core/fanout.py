"""
Concurrent fan-out with per-task results.

Runs independent callables on a thread pool and waits for all of them. Every task
yields a SettledResult; an exception or a timeout marks that task as failed and
never affects its siblings.
"""

from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from activity_status.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class SettledResult(Generic[T]):
    """Outcome of one fan-out task."""

    name: str
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FanOutTimeout(Exception):
    """Raised into a SettledResult when a task did not finish in time."""


def settle_all(
    tasks: Sequence[tuple[str, Callable[[], T]]],
    max_workers: int = 4,
    timeout: Optional[float] = None,
) -> list[SettledResult[T]]:
    """Run named tasks concurrently and collect every outcome.

    Args:
        tasks: (name, callable) pairs
        max_workers: Thread pool size
        timeout: Seconds to wait for the whole batch (no limit when None)

    Returns:
        One SettledResult per task, in submission order
    """
    if not tasks:
        return []

    executor = ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(tasks))))
    try:
        futures = [executor.submit(func) for _, func in tasks]
        done, not_done = wait(futures, timeout=timeout)

        results: list[SettledResult[Any]] = []
        for (name, _), future in zip(tasks, futures):
            if future in not_done:
                future.cancel()
                logger.warning(f"Task {name} did not finish within {timeout}s")
                results.append(SettledResult(name=name, error=FanOutTimeout(f"{name} timed out")))
                continue

            error = future.exception()
            if error is not None:
                logger.warning(f"Task {name} failed: {type(error).__name__}: {error}")
                results.append(SettledResult(name=name, error=error))
            else:
                results.append(SettledResult(name=name, value=future.result()))

        return results
    finally:
        # Stragglers keep running in the background; their results are discarded
        executor.shutdown(wait=False, cancel_futures=True)
