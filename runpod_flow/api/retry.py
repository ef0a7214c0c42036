# runpod_flow/api/retry.py
"""Opt-in retry policy for RunPod job calls with exponential backoff."""

import logging

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from runpod_flow.config.schema import RetryConfig
from runpod_flow.errors import ClassifiedError, ErrorKind

logger = logging.getLogger(__name__)


def is_retryable(exception: BaseException) -> bool:
    """
    Returns True if the exception should be retried.

    Only NETWORK errors (connection failures and 5xx responses) qualify.
    Auth, not-found, malformed and remote job failures are never retried.
    """
    return isinstance(exception, ClassifiedError) and exception.kind is ErrorKind.NETWORK


def build_retry_policy(config: RetryConfig) -> AsyncRetrying | None:
    """
    Build the tenacity policy described by config.

    Returns:
        AsyncRetrying instance, or None when retries are disabled (the default)
    """
    if not config.enabled:
        return None

    return AsyncRetrying(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(multiplier=1, min=config.min_wait, max=config.max_wait),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
