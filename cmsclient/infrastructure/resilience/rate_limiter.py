"""Implementation of the monthly request quota.

Counts every request that is about to reach the network and rejects it
once the configured monthly quota is used up. The counter lives for the
process lifetime; resetting it at the start of a billing period is the
caller's business (construct a new limiter).
"""

import logging
from threading import Lock
from typing import Any, Callable, Optional

from cmsclient.domain.errors import QuotaExceededError
from cmsclient.domain.events.api_events import QuotaThresholdReached

logger = logging.getLogger(__name__)

DEFAULT_MONTHLY_LIMIT = 10_000
DEFAULT_WARNING_RATIO = 0.8


class RateLimiter:
    """Tracks accounted requests against a fixed monthly quota."""

    def __init__(
        self,
        monthly_limit: int = DEFAULT_MONTHLY_LIMIT,
        warning_ratio: float = DEFAULT_WARNING_RATIO,
        event_handler: Optional[Callable[[Any], None]] = None,
    ):
        """Initializes the RateLimiter.

        Args:
            monthly_limit: Number of requests allowed for the process lifetime.
            warning_ratio: Fraction of the quota after which each request logs a warning.
            event_handler: Optional callable receiving QuotaThresholdReached events.
        """
        if monthly_limit <= 0:
            raise ValueError("Monthly limit must be positive.")
        if not 0 < warning_ratio <= 1:
            raise ValueError("Warning ratio must be in (0, 1].")
        self.monthly_limit = monthly_limit
        self.warning_ratio = warning_ratio
        self._event_handler = event_handler
        self._count = 0
        self._lock = Lock()
        logger.info(f"RateLimiter initialized: {self.monthly_limit} requests / month.")

    @property
    def count(self) -> int:
        return self._count

    @property
    def remaining(self) -> int:
        return max(0, self.monthly_limit - self._count)

    @property
    def warning_threshold(self) -> float:
        return self.monthly_limit * self.warning_ratio

    def record_request(self) -> None:
        """Accounts one request.

        The counter is incremented even when the request is then rejected.

        Raises:
            QuotaExceededError: The quota was already used up before this call.
        """
        with self._lock:
            self._count += 1
            count = self._count

        if count > self.monthly_limit:
            logger.error(f"Monthly request quota exceeded: {count}/{self.monthly_limit}")
            raise QuotaExceededError(count=count, limit=self.monthly_limit)

        if count >= self.warning_threshold:
            logger.warning(f"Approaching monthly request quota: {count}/{self.monthly_limit}")
            if self._event_handler:
                self._event_handler(QuotaThresholdReached(count=count, limit=self.monthly_limit))
