# runpod_flow/api/__init__.py
"""RunPod API binding with opt-in retry logic."""

from .client import DEFAULT_BASE_URL, DEFAULT_GRAPHQL_URL, RunpodClient
from .retry import build_retry_policy, is_retryable

__all__ = [
    "RunpodClient",
    "DEFAULT_BASE_URL",
    "DEFAULT_GRAPHQL_URL",
    "build_retry_policy",
    "is_retryable",
]
