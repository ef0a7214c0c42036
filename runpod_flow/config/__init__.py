# runpod_flow/config/__init__.py
"""Configuration system for runpod-flow."""

from .loader import API_KEY_ENV, get_config_path, load_config
from .schema import (
    CatalogConfig,
    OutputConfig,
    PollingConfig,
    RetryConfig,
    RunpodConfig,
    RunpodFlowConfig,
)

__all__ = [
    "RunpodFlowConfig",
    "RunpodConfig",
    "PollingConfig",
    "CatalogConfig",
    "RetryConfig",
    "OutputConfig",
    "API_KEY_ENV",
    "load_config",
    "get_config_path",
]
