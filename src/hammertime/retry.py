"""Throttling retry for Auto Scaling API calls.

Mutating calls run concurrently against one account-wide rate limit, so a
throttled call is retried with exponential backoff. Any other error is raised
straight away.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

THROTTLING_ERROR_CODES: set[str] = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RateExceeded",
}


@dataclass
class RetryConfig:
    """Backoff settings.

    Attributes:
        retries: Retries after the first call (0 disables retry)
        min_delay: Delay before the first retry (seconds)
        factor: Multiplier applied per retry
        max_delay: Upper bound on a single delay, None for no bound
    """

    retries: int = 10
    min_delay: float = 1.0
    factor: float = 2.0
    max_delay: Optional[float] = None

    def get_delay(self, attempt: int) -> float:
        """Delay before retry number `attempt` (starting at 1)."""
        delay = self.min_delay * (self.factor ** (attempt - 1))
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay


DEFAULT_RETRY_CONFIG = RetryConfig()


def is_throttling(error: BaseException) -> bool:
    """Return True if the error is an AWS rate-limit rejection."""
    if not isinstance(error, ClientError):
        return False
    return error.response.get("Error", {}).get("Code") in THROTTLING_ERROR_CODES


def call_with_retry(
    func: Callable[[], T],
    description: str,
    config: Optional[RetryConfig] = None,
) -> T:
    """Call `func`, retrying while AWS throttles it.

    Args:
        func: Zero-argument callable making one API call
        description: What is being attempted (e.g. "tag web-asg"), for logs
        config: Backoff settings (default: 10 retries from 1s, doubling)

    Returns:
        Whatever `func` returns

    Raises:
        ClientError: The last throttling error once retries are exhausted
        Exception: Any non-throttling error, on first occurrence
    """
    config = config or DEFAULT_RETRY_CONFIG
    attempt = 0

    while True:
        try:
            return func()
        except ClientError as e:
            if not is_throttling(e) or attempt >= config.retries:
                raise

            attempt += 1
            logger.warning(
                f"Throttling the AWS API trying to {description}. "
                f"Backing off... ({attempt}/{config.retries})"
            )
            time.sleep(config.get_delay(attempt))
