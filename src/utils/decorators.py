from functools import wraps
import logging
import time

from src.utils.exceptions import SerpFetchError


def retry_on_retryable(max_attempts: int = 3, base_delay: float = 1.0):
    """
    Decorator to retry upstream SERP calls with exponential backoff.

    Only ``SerpFetchError`` instances flagged ``retryable`` are retried; any
    other error, and the last retryable one, propagates unchanged.

    Args:
        max_attempts: Total number of calls, including the first one
        base_delay: Wait before the second attempt in seconds, doubled after
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            attempts = max(1, max_attempts)
            for attempt in range(attempts):
                try:
                    return func(*args, **kwargs)
                except SerpFetchError as e:
                    if not e.retryable or attempt == attempts - 1:
                        raise
                    wait_time = base_delay * (2 ** attempt)
                    logging.warning(
                        "Retryable upstream error in %s (%s). Attempt %s/%s. Waiting %.1fs...",
                        func.__name__, e, attempt + 1, attempts, wait_time,
                    )
                    if wait_time > 0:
                        time.sleep(wait_time)
            return None  # Should not reach here
        return wrapper
    return decorator
