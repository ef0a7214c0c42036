# runpod_flow/config/schema.py
"""
Pydantic configuration models for runpod-flow.

All models use extra="ignore" to allow unknown YAML keys without crashing.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from runpod_flow.models.jobs import (
    MAX_POLL_INTERVAL_MS,
    MAX_TIMEOUT_MS,
    MIN_POLL_INTERVAL_MS,
    MIN_TIMEOUT_MS,
)


class RunpodConfig(BaseModel):
    """RunPod API connection configuration."""

    model_config = ConfigDict(extra="ignore")

    api_key: SecretStr | None = Field(
        default=None,
        description="RunPod API key (RUNPOD_API_KEY overrides; never logged)",
    )
    base_url: str = Field(
        default="https://api.runpod.ai/v2", description="Serverless API base URL"
    )
    graphql_url: str = Field(
        default="https://api.runpod.io/graphql",
        description="GraphQL endpoint used for model discovery",
    )
    request_timeout: float = Field(
        default=300.0,
        gt=0.0,
        description="Transport ceiling in seconds for a single request (runsync blocks)",
    )


class PollingConfig(BaseModel):
    """Defaults for asynchronous run-and-wait jobs."""

    model_config = ConfigDict(extra="ignore")

    poll_interval_ms: int = Field(
        default=2_000,
        ge=MIN_POLL_INTERVAL_MS,
        le=MAX_POLL_INTERVAL_MS,
        description="Delay between status polls in milliseconds",
    )
    timeout_ms: int = Field(
        default=300_000,
        ge=MIN_TIMEOUT_MS,
        le=MAX_TIMEOUT_MS,
        description="Local wait budget in milliseconds (remote job is not cancelled)",
    )


class CatalogConfig(BaseModel):
    """Model catalog cache configuration."""

    model_config = ConfigDict(extra="ignore")

    ttl_seconds: float = Field(
        default=300.0, gt=0.0, description="Seconds a catalog snapshot stays fresh"
    )


class RetryConfig(BaseModel):
    """Opt-in exponential backoff for job calls (disabled by default)."""

    model_config = ConfigDict(extra="ignore")

    enabled: bool = Field(
        default=False, description="Retry NETWORK failures on submit/status calls"
    )
    max_attempts: int = Field(default=3, ge=1, le=10, description="Total attempts per call")
    min_wait: float = Field(default=1.0, ge=0.0, description="Minimum backoff in seconds")
    max_wait: float = Field(default=30.0, ge=0.0, description="Maximum backoff in seconds")


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    model_config = ConfigDict(extra="ignore")

    verbosity: Literal["quiet", "normal", "verbose"] = Field(
        default="normal", description="Logging verbosity level"
    )


class RunpodFlowConfig(BaseModel):
    """Root configuration for runpod-flow."""

    model_config = ConfigDict(extra="ignore")

    runpod: RunpodConfig = Field(default_factory=RunpodConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
