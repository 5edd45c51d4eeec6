"""
sgrlib.concurrency: bounded thread pool helpers for per-row work.

Every unit of work is wrapped so that it returns a TaskOutcome carrying
either a result or the exception it raised. A failing task never escapes
its worker thread, so one row's failure cannot abort the batch.

Imports from sgrlib.config (safe, config has no intra-package imports).
Zero dependency on utils.py.
"""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional

from sgrlib.config import get_max_workers

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Outcome type
# ---------------------------------------------------------------------------


@dataclass
class TaskOutcome:
    """Result-or-error of one unit of work, tagged with a caller-defined key."""

    key: Any
    result: Any = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Task wrappers
# ---------------------------------------------------------------------------


def run_captured(key: Any, func: Callable[..., Any], *args, **kwargs) -> TaskOutcome:
    """
    Call func and capture its return value or exception in a TaskOutcome.

    Args:
        key: Identifies the unit of work in the outcome
        func: Callable to run
        *args, **kwargs: Passed through to func

    Returns:
        TaskOutcome: result set on success, error set on failure
    """
    try:
        return TaskOutcome(key=key, result=func(*args, **kwargs))
    except Exception as e:
        logger.debug("Task %r failed: %s", key, e, exc_info=True)
        return TaskOutcome(key=key, error=e)


def submit_captured(
    executor: Executor,
    key: Any,
    func: Callable[..., Any],
    *args,
    **kwargs,
) -> Future:
    """
    Submit func to the executor wrapped by run_captured.

    The returned future always resolves to a TaskOutcome and never raises.
    """
    return executor.submit(run_captured, key, func, *args, **kwargs)


def iter_completed(futures: Iterable[Future]) -> Iterator[TaskOutcome]:
    """
    Yield TaskOutcomes in completion order.

    Example:
        >>> with create_executor(4) as executor:
        ...     futures = [submit_captured(executor, n, pow, n, 2) for n in range(3)]
        ...     squares = sorted(o.result for o in iter_completed(futures))
    """
    for future in as_completed(list(futures)):
        yield future.result()


# ---------------------------------------------------------------------------
# Executor factory
# ---------------------------------------------------------------------------


def create_executor(max_workers: Optional[int] = None) -> ThreadPoolExecutor:
    """
    Create the thread pool that bounds in-flight API calls.

    Args:
        max_workers: Pool size (default: from config, see get_max_workers)

    Returns:
        ThreadPoolExecutor: Pool to be used as a context manager
    """
    if max_workers is None:
        max_workers = get_max_workers()

    logger.info("Running rule tasks concurrently (max_workers=%d)", max_workers)
    return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sgrules")
