"""
Bounded retry and an unordered worker pool.

The pool fans keyed units of work out to threads. Each unit gets its own
retry budget; the join point fails the whole operation if any unit exhausts
it. Units that succeeded are not run again.
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Hashable, List, TypeVar

from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class TaskFailed(Exception):
    """A unit of work failed on every attempt."""

    def __init__(self, name: str, attempts: int, last_error: Exception):
        super().__init__(f"{name} failed after {attempts} attempts: {last_error}")
        self.name = name
        self.attempts = attempts
        self.last_error = last_error


class TaskPoolError(Exception):
    """One or more pooled units exhausted their retries."""

    def __init__(self, failures: Dict[Hashable, TaskFailed]):
        keys = ", ".join(str(k) for k in failures)
        super().__init__(f"{len(failures)} task(s) failed: {keys}")
        self.failures = failures


def retry_call(
    operation: Callable[[], T],
    attempts: int,
    delay: float,
    name: str = "operation",
) -> T:
    """
    Run ``operation`` until it succeeds or ``attempts`` runs have failed.

    Args:
        operation: Zero-argument callable; any exception counts as a failure
        attempts: Attempt ceiling (at least 1)
        delay: Seconds to sleep between failed attempts
        name: Label for log messages

    Returns:
        Whatever ``operation`` returned on its first successful run

    Raises:
        TaskFailed: wrapping the last error once the ceiling is reached
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    last_error = None

    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except Exception as e:
            last_error = e
            if attempt < attempts:
                logger.warning(f"{name} failed (attempt {attempt}/{attempts}): {e}. Retrying in {delay}s")
                time.sleep(delay)
            else:
                logger.warning(f"All {attempts} attempts of {name} failed: {e}")

    raise TaskFailed(name, attempts, last_error)


def run_pool(
    tasks: Dict[Hashable, Callable[[], T]],
    workers: int,
    attempts: int,
    delay: float,
) -> Dict[Hashable, T]:
    """
    Run every task concurrently, each with its own bounded retry.

    Args:
        tasks: Mapping of key to zero-argument unit of work
        workers: Thread pool size
        attempts: Per-task attempt ceiling
        delay: Per-task delay between attempts in seconds

    Returns:
        Mapping of key to result, in completion order

    Raises:
        TaskPoolError: if any task exhausted its retries
    """
    results: Dict[Hashable, T] = {}
    failures: Dict[Hashable, TaskFailed] = {}

    if not tasks:
        return results

    logger.info(f"Dispatching {len(tasks)} tasks to {workers} workers")

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(retry_call, task, attempts, delay, str(key)): key
            for key, task in tasks.items()
        }

        for future in as_completed(futures):
            key = futures[future]
            try:
                results[key] = future.result()
            except TaskFailed as e:
                failures[key] = e

    if failures:
        failed: List[str] = [str(k) for k in failures]
        logger.error(f"{len(failures)}/{len(tasks)} tasks failed: {', '.join(failed)}")
        raise TaskPoolError(failures)

    logger.info(f"All {len(tasks)} tasks completed")
    return results
