from .logger import get_logger, shutdown_logging
from .retry import RetryConfig, calculate_delay, poll_until

__all__ = [
    "get_logger",
    "shutdown_logging",
    "RetryConfig",
    "calculate_delay",
    "poll_until",
]
