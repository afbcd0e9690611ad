# src/locate/gates.py
import logging
from typing import Optional

from src.core.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Minimum spacing between accepted forward lookups.
    Unlike a sleeping throttle this never waits: a premature call is refused
    so the caller can tell the user to wait.
    """

    def __init__(self, min_interval_ms: Optional[int] = None):
        if min_interval_ms is None:
            min_interval_ms = settings.rate_limit_interval_ms
        self.min_interval_ms = min_interval_ms
        self.last_request_at_ms: Optional[int] = None

    def try_acquire(self, now_ms: int) -> bool:
        if self.last_request_at_ms is not None:
            elapsed = now_ms - self.last_request_at_ms
            if elapsed < self.min_interval_ms:
                logger.debug(f"rate limiter: refused, {elapsed}ms since last lookup")
                return False
        self.last_request_at_ms = now_ms
        return True


class TriggerGate:
    """Accepts each value of a monotonically increasing trigger counter at most once."""

    def __init__(self):
        self.last_processed: Optional[int] = None

    def is_pending(self, value) -> bool:
        if value is None or value is False:
            return False
        if self.last_processed is None:
            return value > 0
        return value > self.last_processed

    def should_process(self, value) -> bool:
        if not self.is_pending(value):
            return False
        self.last_processed = value
        return True
