"""Bounded-latency calls into fallible collaborators.

The judge collaborator is the only blocking dependency of the core. Calls run
on a small shared worker pool so the caller can stop waiting at a hard
deadline; a late worker finishes in the background and its result is dropped.
Workers are not killable and are joined at interpreter exit, so collaborators
must bound their own blocking calls (see ScenarioJudge.choose).
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, TypeVar

T = TypeVar("T")

MAX_JUDGE_WORKERS = 8

_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()
_in_flight = 0


class DeadlineExceeded(Exception):
    """Raised when a collaborator call does not finish before its deadline."""


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=MAX_JUDGE_WORKERS, thread_name_prefix="judge"
            )
        return _executor


def _track(delta: int) -> None:
    global _in_flight
    with _executor_lock:
        _in_flight += delta


def call_with_deadline(fn: Callable[..., T], timeout_s: float, *args, **kwargs) -> T:
    """Run fn(*args, **kwargs) and wait at most timeout_s seconds for it.

    Args:
        fn: Callable to run on the judge worker pool
        timeout_s: Hard deadline in seconds

    Returns:
        Whatever fn returns

    Raises:
        DeadlineExceeded: If fn has not returned within timeout_s
        Exception: Any exception raised by fn is re-raised unchanged
    """
    _track(1)
    future: Future = _get_executor().submit(fn, *args, **kwargs)
    future.add_done_callback(lambda _f: _track(-1))
    try:
        return future.result(timeout=timeout_s)
    except FutureTimeout as e:
        future.cancel()
        raise DeadlineExceeded(f"collaborator call exceeded {timeout_s:.1f}s") from e


def status() -> dict[str, dict[str, int | None]]:
    """Return judge pool status.

    Returns:
        Dict with in-flight call count and worker cap
    """
    return {
        "judge": {
            "in_use": _in_flight,
            "max": MAX_JUDGE_WORKERS,
        }
    }
