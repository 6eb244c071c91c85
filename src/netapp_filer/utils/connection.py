"""Retry policy for opening connections to a filer.

Only connection setup is retried. Commands sent to the appliance are not
idempotent, so a command that may have reached the filer is never sent
again from here.
"""
import logging
import socket
from functools import wraps
from typing import Any, Callable, TypeVar

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    retry_if_not_exception_type,
    before_sleep_log,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures worth another connection attempt
RETRYABLE_EXCEPTIONS = (
    ConnectionRefusedError,
    ConnectionResetError,
    TimeoutError,
    OSError,
    EOFError,
)

# OSError subclasses that another attempt will not fix
PERMANENT_EXCEPTIONS = (
    socket.gaierror,
    PermissionError,
)


def with_retry(
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 10,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
    never: tuple = PERMANENT_EXCEPTIONS,
) -> Callable:
    """Decorator factory for exponential backoff on connection errors.

    Args:
        max_attempts: Maximum number of attempts
        min_wait: Minimum wait between attempts (seconds)
        max_wait: Maximum wait between attempts (seconds)
        exceptions: Exception types that trigger another attempt
        never: Exception types raised at once even if listed in exceptions
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
            retry=retry_if_exception_type(exceptions) & retry_if_not_exception_type(never),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return func(*args, **kwargs)

        return wrapper

    return decorator


def connect_with_retry(config, connect: Callable[[], T], exceptions: tuple = RETRYABLE_EXCEPTIONS) -> T:
    """Call connect() under the retry settings of a FilerConfig.

    Waits start at ``retry_delay`` and grow up to five times that, for at
    most ``connect_retries`` attempts.
    """
    attempt = with_retry(
        max_attempts=config.connect_retries,
        min_wait=config.retry_delay,
        max_wait=config.retry_delay * 5,
        exceptions=exceptions,
    )(connect)
    logger.debug(f"[{config.name}] connecting (up to {config.connect_retries} attempts)")
    return attempt()
