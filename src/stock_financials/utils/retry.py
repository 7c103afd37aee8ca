"""
Backoff helpers shared by the analytical sink and the chat client.

The pipeline does not retry fetches or writes. The only bounded waits are
the table-visibility poll after creating a BigQuery table and the chat
client's fallback attempts; both compute their delays here.
"""

import random
import time
from dataclasses import dataclass
from typing import Callable

from stock_financials.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    base_delay: float = 1.0  # Base delay in seconds
    max_delay: float = 60.0  # Maximum delay in seconds
    backoff_factor: float = 2.0  # Exponential backoff multiplier
    jitter: bool = False


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate delay for exponential backoff with optional jitter."""
    delay = min(config.base_delay * (config.backoff_factor**attempt), config.max_delay)

    if config.jitter:
        jitter_range = delay * 0.25
        delay += random.uniform(-jitter_range, jitter_range)

    return max(0, delay)


def poll_until(check: Callable[[], bool], config: RetryConfig, description: str) -> bool:
    """
    Re-run `check` until it returns True or attempts run out.

    Sleeps `calculate_delay(n, config)` before the n-th (1-based) re-check,
    so with the default config the waits are 2s, 4s, 8s.

    Returns:
        True if the check passed, False if attempts were exhausted.
    """
    for attempt in range(1, config.max_attempts + 1):
        delay = calculate_delay(attempt, config)
        logger.info(
            f"Waiting {delay:.1f}s for {description} (check {attempt}/{config.max_attempts})"
        )
        time.sleep(delay)
        if check():
            return True

    logger.warning(f"{description} not confirmed after {config.max_attempts} checks")
    return False
