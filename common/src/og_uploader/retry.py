import time
from typing import Callable, Optional, TypeVar

from .console import Console

T = TypeVar("T")


class RetryPolicy:
    """
    Run a step up to ``max_attempts`` times with a fixed pause in between.

    The last error is re-raised unchanged once attempts are exhausted, or
    straight away when it carries ``retryable = False``.
    """

    def __init__(self, max_attempts: int = 1, backoff_seconds: float = 0.0,
                 sleep: Callable[[float], None] = time.sleep, console: Optional[Console] = None):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.sleep = sleep
        self.console = console or Console()

    def call(self, fn: Callable[[], T], label: str = "step") -> T:
        for attempt in range(1, self.max_attempts + 1):
            try:
                return fn()
            except Exception as e:
                if attempt >= self.max_attempts or not getattr(e, "retryable", True):
                    raise
                self.console.warn(
                    f"{label} failed (attempt {attempt}/{self.max_attempts}): {e}; "
                    f"retrying in {self.backoff_seconds:g}s"
                )
                self.sleep(self.backoff_seconds)
