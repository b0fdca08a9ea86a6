"""Retry utilities with exponential backoff for catalog store access."""

import logging

import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from recommender.errors import DependencyUnavailableError

logger = structlog.stdlib.get_logger(__name__)


def store_retry(
    max_attempts: int = 3,
    min_wait: float = 0.5,
    max_wait: float = 5.0,
    exceptions: tuple = (DependencyUnavailableError,),
):
    """Retry decorator for calls that hit the catalog store.

    Only transient store failures are retried; NotFoundError,
    InvalidRequestError and GraphIntegrityError propagate immediately.

    Args:
        max_attempts: Max retry attempts
        min_wait: Min wait between retries (seconds)
        max_wait: Max wait between retries (seconds)
        exceptions: Exception types to retry on
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def retry_from_config(config: dict):
    """Create a store retry decorator from the config dict's retry section."""
    retry_config = config.get("retry", {})
    return store_retry(
        max_attempts=retry_config.get("max_attempts", 3),
        min_wait=retry_config.get("min_wait", 0.5),
        max_wait=retry_config.get("max_wait", 5.0),
    )
