"""Best-effort side effects.

Notification and broadcast dispatch must never fail the operation that
triggered it. `fan_out` runs a batch of callables on a shared pool, waits for
all of them and logs every failure.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Iterable, List

logger = logging.getLogger(__name__)

Task = Callable[[], object]


class FanOut:
    def __init__(self, max_workers: int = 8):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="fanout")

    def run(self, tasks: Iterable[Task], *, label: str) -> List[BaseException]:
        """Run every task and return the failures (already logged)."""
        futures = [self._executor.submit(task) for task in tasks]
        if not futures:
            return []

        wait(futures)
        failures: List[BaseException] = []
        for future in futures:
            error = future.exception()
            if error is not None:
                failures.append(error)
                logger.error(f"{label}: side effect failed: {error!r}", exc_info=error)
        if failures:
            logger.warning(f"{label}: {len(failures)}/{len(futures)} side effects failed")
        return failures

    def close(self) -> None:
        self._executor.shutdown(wait=True)


def best_effort(action: Task, *, label: str) -> None:
    """Run one side effect inline, logging instead of raising."""
    try:
        action()
    except Exception as ex:
        logger.error(f"{label}: side effect failed: {ex!r}", exc_info=True)
