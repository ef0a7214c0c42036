# runpod_flow/factory.py
"""Factories wiring the client, catalog and executor from config."""

from runpod_flow.api.client import RunpodClient
from runpod_flow.api.retry import build_retry_policy
from runpod_flow.catalog.cache import ModelCatalog
from runpod_flow.config.schema import RunpodFlowConfig
from runpod_flow.jobs.executor import JobExecutor


class MissingApiKeyError(ValueError):
    """Raised when no RunPod API key is configured."""


def create_client(config: RunpodFlowConfig) -> RunpodClient:
    """
    Create a RunpodClient from config.

    Raises:
        MissingApiKeyError: If neither config nor RUNPOD_API_KEY supplies a key
    """
    if config.runpod.api_key is None or not config.runpod.api_key.get_secret_value():
        raise MissingApiKeyError(
            "No RunPod API key configured. Set RUNPOD_API_KEY or runpod.api_key in config.yaml"
        )
    return RunpodClient(
        api_key=config.runpod.api_key.get_secret_value(),
        base_url=config.runpod.base_url,
        graphql_url=config.runpod.graphql_url,
        timeout=config.runpod.request_timeout,
        retry_policy=build_retry_policy(config.retry),
    )


def create_catalog(config: RunpodFlowConfig, client: RunpodClient) -> ModelCatalog:
    """Create a ModelCatalog backed by client's registry query."""
    return ModelCatalog(client, ttl=config.catalog.ttl_seconds)


def create_executor(client: RunpodClient) -> JobExecutor:
    """Create a JobExecutor bound to client."""
    return JobExecutor(client)
