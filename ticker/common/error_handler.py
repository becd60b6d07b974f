"""
Error Handling Utilities

Common error handling patterns used across the ticker package.
"""

import logging
import time
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from ticker.exceptions import TickerError

T = TypeVar('T')


def safe_execute(
    operation: Callable[[], T],
    error_message: str,
    logger: logging.Logger,
    default: Optional[T] = None,
    raise_on_error: bool = False,
    exception_type: type = TickerError
) -> Optional[T]:
    """
    Safely execute an operation with error handling.

    Args:
        operation: Function to execute
        error_message: Base error message
        logger: Logger instance
        default: Default value to return on error
        raise_on_error: If True, raise exception instead of returning default
        exception_type: Type of exception to raise if raise_on_error is True

    Returns:
        Result of operation or default value (or raises exception)
    """
    try:
        return operation()
    except TickerError:
        raise
    except Exception as e:
        logger.error("%s: %s", error_message, e, exc_info=True)
        if raise_on_error:
            raise exception_type(error_message, context={'original_error': str(e)}) from e
        return default


def retry_on_failure(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: tuple = (Exception,),
    logger: Optional[logging.Logger] = None,
    sleep: Callable[[float], Any] = time.sleep
):
    """
    Decorator to retry a function on failure.

    Args:
        max_attempts: Maximum number of retry attempts
        delay: Initial delay between retries in seconds
        backoff: Multiplier for delay after each retry
        exceptions: Tuple of exceptions to catch and retry on
        logger: Optional logger instance
        sleep: Function used to wait between attempts

    Returns:
        Decorator function
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            current_delay = delay
            last_exception = None

            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt < max_attempts - 1:
                        if logger:
                            logger.warning(
                                "%s failed (attempt %d/%d): %s. Retrying in %.1fs...",
                                func.__name__, attempt + 1, max_attempts, e, current_delay
                            )
                        sleep(current_delay)
                        current_delay *= backoff
                    elif logger:
                        logger.error(
                            "%s failed after %d attempts: %s",
                            func.__name__, max_attempts, e
                        )

            raise last_exception

        return wrapper
    return decorator
